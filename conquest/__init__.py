"""
Conquest - rules server for a territorial-conquest board game.
"""
