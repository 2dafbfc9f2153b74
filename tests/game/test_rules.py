"""State machine tests on transient objects; no database involved."""

import uuid

import pytest

from history_time.game import rules
from history_time.game.errors import (
    CardNotInHandError,
    DuplicatePlayerError,
    GameError,
    GameFullError,
    IdentityError,
    InvalidPositionError,
    InvalidStateError,
    NotEnoughCardsError,
    NotHostError,
    NotYourTurnError,
    PositionOccupiedError,
)
from history_time.game.identity import AuthenticatedActor, GuestActor
from history_time.models import Card, Difficulty, GameStatus

ADA = GuestActor("Ada")
GRACE = GuestActor("Grace")
LINUS = GuestActor("Linus")


def make_deck(years):
    return [
        Card(id=uuid.uuid4(), title=f"Event {year}", year=year, category="science")
        for year in years
    ]


def waiting_game(*actors, max_players=4, difficulty=Difficulty.EASY):
    game = rules.new_game("ABC234", actors[0], difficulty=difficulty, max_players=max_players)
    for actor in actors[1:]:
        rules.join(game, actor)
    return game


def active_game(*actors, years=None):
    game = waiting_game(*actors)
    needed = rules.cards_needed(game)
    rules.start(game, actors[0], make_deck(years or range(1900, 1900 + needed)))
    return game


def test_new_game_seats_host():
    game = rules.new_game("ABC234", AuthenticatedActor("user-1"), username="  Countess  ")

    assert game.status == GameStatus.WAITING
    assert game.host_index == 0
    assert game.players[0].username == "Countess"
    assert not game.players[0].is_guest


def test_guest_seat_keeps_identifying_name():
    game = rules.new_game("ABC234", ADA, username="Countess")
    player = rules.join(game, GRACE, username="Other")

    assert game.players[0].username == "Ada"
    assert player.username == "Grace"
    assert game.players[0].is_guest


@pytest.mark.parametrize("max_players", [1, 9])
def test_new_game_rejects_player_limits(max_players):
    with pytest.raises(GameError):
        rules.new_game("ABC234", ADA, max_players=max_players)


def test_authenticated_host_without_name_is_rejected():
    with pytest.raises(IdentityError):
        rules.new_game("ABC234", AuthenticatedActor("user-1"))


def test_join_is_not_repeatable():
    game = waiting_game(ADA, GRACE)

    with pytest.raises(DuplicatePlayerError):
        rules.join(game, GRACE)
    assert len(game.players) == 2


def test_join_full_game():
    game = waiting_game(ADA, GRACE, max_players=2)

    with pytest.raises(GameFullError):
        rules.join(game, LINUS)


def test_guest_username_is_taken_whatever_the_guest_id():
    game = waiting_game(GuestActor("Sam", guest_id="a"))

    with pytest.raises(DuplicatePlayerError):
        rules.join(game, GuestActor("Sam", guest_id="b"))
    assert len(game.players) == 1


def test_rejoin_reactivates_old_seat():
    game = waiting_game(ADA, GRACE, LINUS)
    rules.leave(game, GRACE)

    player = rules.join(game, GRACE)

    assert player.seat == 1
    assert len(game.players) == 3
    assert player.is_active


def test_start_deals_distinct_hands_in_draw_order():
    game = waiting_game(ADA, GRACE)
    deck = make_deck(range(2000, 2006))

    rules.start(game, ADA, deck)

    assert game.status == GameStatus.ACTIVE
    assert game.timeline_capacity == 6
    assert game.current_player_index == 0
    assert [c.card for c in game.players[0].cards] == deck[:3]
    assert [c.card for c in game.players[1].cards] == deck[3:]
    assert [c.draw_order for c in game.players[1].cards] == [3, 4, 5]


def test_start_skips_players_who_left():
    game = waiting_game(ADA, GRACE, LINUS)
    rules.leave(game, GRACE)

    rules.start(game, ADA, make_deck(range(2000, 2006)))

    assert game.timeline_capacity == 6
    assert game.players[1].cards == []
    assert len(game.players[2].cards) == 3


def test_start_by_non_host():
    game = waiting_game(ADA, GRACE)

    with pytest.raises(NotHostError):
        rules.start(game, GRACE, make_deck(range(2000, 2006)))
    assert game.status == GameStatus.WAITING


def test_start_with_short_deck_changes_nothing():
    game = waiting_game(ADA, GRACE)

    with pytest.raises(NotEnoughCardsError):
        rules.start(game, ADA, make_deck(range(2000, 2005)))
    assert game.status == GameStatus.WAITING
    assert all(not p.cards for p in game.players)


def test_start_twice():
    game = active_game(ADA, GRACE)

    with pytest.raises(InvalidStateError):
        rules.start(game, ADA, make_deck(range(2000, 2006)))


def test_hand_sizes_follow_difficulty():
    assert [rules.hand_size(d) for d in Difficulty] == [3, 5, 7, 10]


def test_turns_rotate_in_seat_order():
    game = active_game(ADA, GRACE, LINUS)
    seats = []
    for actor in (ADA, GRACE, LINUS, ADA):
        seats.append(game.current_player_index)
        player = game.players[game.current_player_index]
        card = player.cards[0]
        position = next(p for p in range(game.timeline_capacity) if p not in game.occupied_positions)
        rules.place_card(game, actor, card.card_id, position)

    assert seats == [0, 1, 2, 0]
    assert game.current_player_index == 1


def test_turn_skips_inactive_players():
    game = active_game(ADA, GRACE, LINUS)
    rules.leave(game, GRACE)

    rules.place_card(game, ADA, game.players[0].cards[0].card_id, 0)

    assert game.current_player_index == 2


def test_placements_in_increasing_order_are_all_correct():
    game = active_game(ADA, GRACE)
    # Card year order equals draw order, so draw order is the right slot
    results = []
    while game.status == GameStatus.ACTIVE:
        player = game.current_player
        actor = ADA if player.seat == 0 else GRACE
        card = player.cards[0]
        results.append(rules.place_card(game, actor, card.card_id, card.draw_order))

    assert all(r.is_correct for r in results)
    assert results[-1].game_over
    assert [p.year for p in sorted(game.timeline, key=lambda p: p.position)] == list(range(1900, 1906))
    assert [p.score for p in game.players] == [30, 30]
    assert game.winner_index == 0


def test_equal_years_respect_setting():
    game = active_game(ADA, GRACE, years=[1900, 1950, 1950, 1900, 1950, 1950])
    rules.place_card(game, ADA, game.players[0].cards[0].card_id, 0)
    equal = game.players[1].cards[0]  # year 1900

    result = rules.place_card(game, GRACE, equal.card_id, 1, accept_equal_years=False)

    assert result.is_correct is False
    assert game.players[1].incorrect_placements == 1


def test_placement_rejections_leave_game_untouched():
    game = active_game(ADA, GRACE)
    ada_card = game.players[0].cards[0].card_id
    grace_card = game.players[1].cards[0].card_id

    with pytest.raises(NotYourTurnError):
        rules.place_card(game, GRACE, grace_card, 0)
    with pytest.raises(CardNotInHandError):
        rules.place_card(game, ADA, grace_card, 0)
    with pytest.raises(InvalidPositionError):
        rules.place_card(game, ADA, ada_card, -1)

    rules.place_card(game, ADA, ada_card, 4)
    with pytest.raises(PositionOccupiedError):
        rules.place_card(game, GRACE, grace_card, 4)

    assert len(game.timeline) == 1
    assert len(game.players[1].cards) == 3
    assert game.current_player_index == 1


def test_host_leaving_hands_over_host_and_turn():
    game = active_game(ADA, GRACE, LINUS)

    rules.leave(game, ADA)

    assert game.host_index == 1
    assert game.current_player_index == 1
    with pytest.raises(NotHostError):
        rules.end(game, LINUS)


def test_leaving_when_nobody_else_holds_cards_completes_game():
    game = active_game(ADA, GRACE)
    while game.players[0].cards:
        if game.current_player_index == 0:
            card = game.players[0].cards[0]
            rules.place_card(game, ADA, card.card_id, card.draw_order)
        else:
            card = game.players[1].cards[0]
            rules.place_card(game, GRACE, card.card_id, card.draw_order)
    assert game.status == GameStatus.ACTIVE

    rules.leave(game, GRACE)

    assert game.status == GameStatus.COMPLETED
    assert game.current_player_index is None
    assert game.winner_index == 0


def test_end_waiting_game_cancels_it():
    game = waiting_game(ADA, GRACE)

    rules.end(game, ADA)

    assert game.status == GameStatus.CANCELLED
    assert game.is_terminal
    with pytest.raises(InvalidStateError):
        rules.end(game, ADA)
