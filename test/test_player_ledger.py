from conquest.engine.state import Card, CardKind, GameState, PlayerState, TurnPhase


def make_player():
    player = PlayerState(id=0, name="Player 1")
    player.add_territory("A")
    player.set_armies("A", 3)
    player.add_territory("B")
    player.set_armies("B", 1)
    return player


def test_reinforce_is_additive():
    player = make_player()
    player.reinforce("A", 2)
    assert player.get_armies("A") == 5
    player.reinforce("Z", 1)
    assert player.get_armies("Z") == 1


def test_remove_armies_saturates_at_zero():
    player = make_player()
    player.remove_armies("B", 5)
    assert player.get_armies("B") == 0


def test_get_armies_defaults_to_zero():
    assert make_player().get_armies("Nowhere") == 0


def test_remove_territory_drops_armies():
    player = make_player()
    player.remove_territory("A")
    assert "A" not in player.territories
    assert "A" not in player.armies


def test_fortify_moves_armies():
    player = make_player()
    player.fortify("A", "B", 2)
    assert player.get_armies("A") == 1
    assert player.get_armies("B") == 3


def test_fortify_skips_when_short():
    player = make_player()
    player.fortify("B", "A", 2)
    assert player.get_armies("A") == 3
    assert player.get_armies("B") == 1


def test_total_armies():
    player = make_player()
    assert player.calculate_total_armies() == 4
    assert player.total_armies == 4


def test_card_round_trip():
    card = Card(CardKind.CAVALRY, "A")
    assert Card.from_dict(card.to_dict()) == card
    assert Card.from_dict({"kind": "Joker", "territory": None}).kind == CardKind.JOKER


def test_state_copy_is_independent():
    state = GameState(players=[make_player()], turn_phase=TurnPhase.ATTACK, active_players=[0])
    copy = state.copy()
    copy.players[0].reinforce("A", 10)
    assert state.players[0].get_armies("A") == 3


def test_owner_lookup():
    state = GameState(players=[make_player()], active_players=[0])
    assert state.owner_of("A").id == 0
    assert state.owner_of("Z") is None
