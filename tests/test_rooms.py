"""
Unit tests for rooms.py: Question validation, Room transitions and RoomRegistry.
"""
import pytest

from errors import (
    DuplicateVote,
    Forbidden,
    InvalidOption,
    InvalidQuestion,
    NameRequired,
    NoActiveQuestion,
    QuestionMismatch,
)
from rooms import Question, Room, RoomRegistry, normalize_name
from session import Session


def make_session(connection_id="c1", room_id="R1", name="Host", role="host"):
    session = Session(connection_id=connection_id)
    session.bind(room_id, name, role)
    return session


def color_question():
    return {"id": "q1", "text": "Color?", "options": ["Red", "Blue"]}


@pytest.fixture()
def room():
    return Room(room_id="R1")


@pytest.fixture()
def host():
    return make_session()


@pytest.fixture()
def voting_room(room, host):
    room.join(host)
    room.set_question(host, color_question())
    return room


def assert_consistent(room):
    assert room.total == sum(room.counts)


class TestQuestion:
    def test_builds_immutable_question(self):
        q = Question.from_payload(color_question())
        assert q.id == "q1"
        assert q.options == ("Red", "Blue")
        assert q.to_dict() == color_question()

    @pytest.mark.parametrize("options", [["A"], ["A", "B", "C", "D", "E"], [], "AB", ["A", 2]])
    def test_rejects_bad_options(self, options):
        with pytest.raises(InvalidQuestion):
            Question.from_payload({"id": "q", "text": "t", "options": options})

    @pytest.mark.parametrize("data", [
        None,
        "q1",
        {"text": "t", "options": ["A", "B"]},
        {"id": "", "text": "t", "options": ["A", "B"]},
        {"id": "q", "text": "", "options": ["A", "B"]},
        {"id": "q", "options": ["A", "B"]},
        {"id": 0, "text": "t", "options": ["A", "B"]},
        {"id": True, "text": "t", "options": ["A", "B"]},
        {"id": 1.5, "text": "t", "options": ["A", "B"]},
    ])
    def test_rejects_missing_fields(self, data):
        with pytest.raises(InvalidQuestion):
            Question.from_payload(data)

    def test_numeric_id_kept_as_is(self):
        q = Question.from_payload({"id": 7, "text": "t", "options": ["A", "B"]})
        assert q.id == 7
        assert q.to_dict()["id"] == 7

    def test_four_options_allowed(self):
        q = Question.from_payload({"id": "q", "text": "t", "options": ["A", "B", "C", "D"]})
        assert len(q.options) == 4


class TestSetQuestion:
    def test_host_sets_question(self, room, host):
        room.set_question(host, color_question())
        snap = room.snapshot()
        assert snap == {
            "roomId": "R1",
            "question": color_question(),
            "counts": [0, 0],
            "total": 0,
        }

    def test_player_is_forbidden(self, room):
        player = make_session("c2", name="Ana", role="player")
        with pytest.raises(Forbidden):
            room.set_question(player, color_question())
        assert room.question is None
        assert room.counts == []

    def test_forbidden_checked_before_validation(self, room):
        player = make_session("c2", name="Ana", role="player")
        with pytest.raises(Forbidden):
            room.set_question(player, None)

    def test_invalid_question_leaves_state(self, voting_room, host):
        voting_room.vote("q1", 0, "Ana")
        with pytest.raises(InvalidQuestion):
            voting_room.set_question(host, {"id": "q2", "text": "x", "options": ["only"]})
        assert voting_room.question.id == "q1"
        assert voting_room.counts == [1, 0]

    def test_replacement_resets_tallies_and_ballots(self, voting_room, host):
        voting_room.vote("q1", 1, "Ana")
        voting_room.set_question(host, {"id": "q2", "text": "Letter?", "options": ["A", "B", "C"]})
        assert voting_room.counts == [0, 0, 0]
        assert voting_room.total == 0
        assert voting_room.voted_by == set()
        voting_room.vote("q2", 0, "Ana")
        assert voting_room.counts == [1, 0, 0]

    def test_replacement_with_same_id_still_clears_ballots(self, voting_room, host):
        voting_room.vote("q1", 0, "Ana")
        voting_room.set_question(host, color_question())
        voting_room.vote("q1", 0, "Ana")
        assert voting_room.total == 1


class TestVote:
    def test_no_active_question(self, room):
        with pytest.raises(NoActiveQuestion):
            room.vote("q1", 0, "Ana")

    def test_question_mismatch(self, voting_room):
        with pytest.raises(QuestionMismatch):
            voting_room.vote("q2", 0, "Ana")
        assert voting_room.counts == [0, 0]

    @pytest.mark.parametrize("index", [5, 2, -1, "1", 1.5, 2.0, True, None])
    def test_invalid_option(self, voting_room, index):
        with pytest.raises(InvalidOption):
            voting_room.vote("q1", index, "Ana")
        assert voting_room.total == 0

    def test_whole_float_option_counts(self, voting_room):
        voting_room.vote("q1", 1.0, "Ana")
        assert voting_room.counts == [0, 1]
        assert_consistent(voting_room)

    def test_numeric_question_id(self, room, host):
        room.set_question(host, {"id": 1, "text": "Color?", "options": ["Red", "Blue"]})
        for wrong_id in ("1", True):
            with pytest.raises(QuestionMismatch):
                room.vote(wrong_id, 0, "Ana")
        room.vote(1, 0, "Ana")
        assert room.counts == [1, 0]
        with pytest.raises(DuplicateVote):
            room.vote(1, 1, "ana")

    @pytest.mark.parametrize("name", ["", "   ", None, 7])
    def test_name_required(self, voting_room, name):
        with pytest.raises(NameRequired):
            voting_room.vote("q1", 0, name)

    def test_counts_vote(self, voting_room):
        key = voting_room.vote("q1", 1, "Ana")
        assert key == ("R1", "q1", "ana")
        assert voting_room.counts == [0, 1]
        assert voting_room.total == 1

    def test_duplicate_is_case_and_space_insensitive(self, voting_room):
        voting_room.vote("q1", 1, "Ana")
        for retry_name, retry_option in [("ana", 1), ("  ANA ", 0)]:
            with pytest.raises(DuplicateVote):
                voting_room.vote("q1", retry_option, retry_name)
        assert voting_room.counts == [0, 1]
        assert_consistent(voting_room)

    def test_total_tracks_counts(self, voting_room):
        for i, name in enumerate(["a", "b", "c", "d", "e"]):
            voting_room.vote("q1", i % 2, name)
            assert_consistent(voting_room)
        assert voting_room.counts == [3, 2]


class TestMembership:
    def test_join_and_leave(self, room, host):
        room.join(host)
        assert host in room.members
        room.leave(host)
        assert host not in room.members

    def test_leave_is_idempotent(self, room, host):
        room.leave(host)
        room.join(host)
        room.leave(host)
        room.leave(host)
        assert room.members == set()

    def test_membership_not_in_snapshot(self, room, host):
        room.join(host)
        assert set(room.snapshot()) == {"roomId", "question", "counts", "total"}

    def test_snapshot_is_a_copy(self, voting_room):
        snap = voting_room.snapshot()
        voting_room.vote("q1", 0, "Ana")
        assert snap["counts"] == [0, 0]


class TestRegistry:
    def test_get_or_create_is_lazy_and_stable(self):
        registry = RoomRegistry()
        assert registry.get("R1") is None
        room = registry.get_or_create("R1")
        assert room.question is None
        assert room.counts == []
        assert room.total == 0
        assert registry.get_or_create("R1") is room
        assert "R1" in registry
        assert len(registry) == 1

    def test_evicts_only_idle_memberless_rooms(self):
        registry = RoomRegistry()
        empty = registry.get_or_create("empty")
        busy = registry.get_or_create("busy")
        busy.join(make_session(room_id="busy"))
        recent = registry.get_or_create("recent")

        now = empty.last_activity + 100
        recent.last_activity = now - 10
        evicted = registry.evict_idle(50, now=now)

        assert evicted == ["empty"]
        assert "empty" not in registry
        assert "busy" in registry
        assert "recent" in registry


def test_normalize_name():
    assert normalize_name("  Ana ") == "ana"
