from datetime import datetime, timedelta, timezone

import pytest

from event_hub_api.app.core.exceptions import BusinessRuleError, NotFoundError
from event_hub_api.app.schemas.event import (
    DateTimeRange,
    Event,
    Organizer,
    RegistrationForm,
    RegistrationSettings,
)
from event_hub_api.app.services import registration as rules

NOW = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
ORGANIZER_ID = 1


def build_event(deadline=None, max_participants=None):
    return Event(
        id=7,
        title="Winter Coding Sprint",
        description="A week of collaborative coding on open problems.",
        category="hackathon",
        mode="Online",
        organizer=Organizer(user_id=ORGANIZER_ID, name="Organizer"),
        date_time=DateTimeRange(start=NOW + timedelta(days=10), end=NOW + timedelta(days=11)),
        registration=RegistrationSettings(
            deadline=deadline or NOW + timedelta(days=5),
            max_participants=max_participants,
        ),
    )


class TestAdmission:

    def test_open_event_admits_new_user(self):
        result = rules.can_register(build_event(), 2, now=NOW)
        assert result.allowed is True
        assert result.reason is None

    def test_deadline_passed(self):
        deadline = NOW
        event = build_event(deadline=deadline)
        result = rules.can_register(event, 2, now=deadline + timedelta(seconds=1))
        assert result.allowed is False
        assert result.reason == "Registration deadline has passed"

    def test_registration_closes_exactly_at_deadline(self):
        event = build_event(deadline=NOW)
        assert rules.can_register(event, 2, now=NOW).allowed is False

    def test_deadline_wins_over_duplicate(self):
        event = build_event(deadline=NOW)
        rules.register_user(event, 2, now=NOW - timedelta(hours=1))
        result = rules.can_register(event, 2, now=NOW + timedelta(seconds=1))
        assert result.reason == "Registration deadline has passed"

    def test_already_registered(self):
        event = build_event()
        rules.register_user(event, 2, now=NOW)
        result = rules.can_register(event, 2, now=NOW)
        assert result.allowed is False
        assert result.reason == "Already registered"

    def test_capacity_is_not_enforced(self):
        event = build_event(max_participants=1)
        rules.register_user(event, 2, now=NOW)
        rules.register_user(event, 3, now=NOW)
        assert rules.can_register(event, 4, now=NOW).allowed is True

    def test_naive_deadline_is_treated_as_utc(self):
        event = build_event(deadline=datetime(2030, 1, 1, 12, 0))
        assert event.registration.deadline.tzinfo is not None
        assert rules.can_register(event, 2, now=NOW - timedelta(minutes=1)).allowed is True


class TestRegisterAndUnregister:

    def test_register_appends_participant(self):
        event = build_event()
        form = RegistrationForm(phone="555-0100", team_name="Lambda", team_size=3)
        participant = rules.register_user(event, 2, form, now=NOW)

        assert event.participants == [participant]
        assert participant.status == "registered"
        assert participant.registered_at == NOW
        assert participant.team_name == "Lambda"
        assert participant.team_size == 3
        assert participant.id
        assert participant.payment_status == "pending"
        assert participant.checked_in is False
        assert event.registration.current_participants == 1

    def test_registration_order_is_preserved(self):
        event = build_event()
        for user_id in (5, 3, 9):
            rules.register_user(event, user_id, now=NOW)
        assert [p.user_id for p in event.participants] == [5, 3, 9]
        assert len({p.id for p in event.participants}) == 3

    def test_unregister_after_register(self):
        event = build_event()
        rules.register_user(event, 2, now=NOW)
        rules.register_user(event, 3, now=NOW)

        removed = rules.unregister_user(event, 2)

        assert removed == 1
        assert [p.user_id for p in event.participants] == [3]
        assert event.registration.current_participants == 1
        assert rules.can_register(event, 2, now=NOW).allowed is True

    def test_unregister_when_not_registered(self):
        event = build_event()
        rules.register_user(event, 3, now=NOW)
        with pytest.raises(BusinessRuleError) as exc_info:
            rules.unregister_user(event, 2)
        assert exc_info.value.message == "You are not registered for this event"
        assert event.registration.current_participants == 1

    def test_counter_never_goes_negative(self):
        event = build_event()
        rules.register_user(event, 2, now=NOW)
        event.registration.current_participants = 0
        rules.unregister_user(event, 2)
        assert event.registration.current_participants == 0

    def test_unregister_removes_duplicate_entries(self):
        event = build_event()
        rules.register_user(event, 2, now=NOW)
        rules.register_user(event, 2, now=NOW)
        assert rules.unregister_user(event, 2) == 2
        assert event.participants == []
        assert event.registration.current_participants == 1


class TestParticipantStatus:

    def test_any_status_may_follow_any_other(self):
        event = build_event()
        participant = rules.register_user(event, 2, now=NOW)
        for status in ("attended", "registered", "cancelled", "confirmed"):
            assert rules.set_participant_status(event, participant.id, status).status == status

    def test_invalid_status_leaves_participant_unchanged(self):
        event = build_event()
        participant = rules.register_user(event, 2, now=NOW)
        with pytest.raises(BusinessRuleError) as exc_info:
            rules.set_participant_status(event, participant.id, "waitlisted")
        assert exc_info.value.message == (
            "Invalid status. Must be one of: registered, confirmed, attended, cancelled"
        )
        assert event.participants[0].status == "registered"

    def test_missing_status_is_invalid(self):
        with pytest.raises(BusinessRuleError):
            rules.validate_status(None)

    def test_unknown_participant(self):
        event = build_event()
        rules.register_user(event, 2, now=NOW)
        with pytest.raises(NotFoundError) as exc_info:
            rules.set_participant_status(event, "does-not-exist", "confirmed")
        assert exc_info.value.message == "Participant not found"


class TestPresentation:

    def setup_method(self):
        self.event = build_event()
        rules.register_user(self.event, 2, now=NOW)
        rules.register_user(self.event, 3, now=NOW)
        self.profiles = {
            2: {"id": 2, "name": "Asha", "email": "asha@example.com", "avatar": None, "profile": {}},
            3: {"id": 3, "name": "Ravi", "email": "ravi@example.com", "avatar": None, "profile": {}},
        }

    @pytest.mark.parametrize("viewer", [None, {"user_id": 2, "role": "student"}, {"user_id": 99, "role": "institution"}])
    def test_other_viewers_only_see_count(self, viewer):
        data = rules.present_event(self.event, viewer, self.profiles)
        assert "participants" not in data
        assert data["participant_count"] == 2
        assert "asha@example.com" not in str(data)

    def test_organizer_sees_expanded_roster(self):
        viewer = {"user_id": ORGANIZER_ID, "role": "student"}
        data = rules.present_event(self.event, viewer, self.profiles)
        assert "participant_count" not in data
        assert [p["user"]["name"] for p in data["participants"]] == ["Asha", "Ravi"]
        assert data["participants"][0]["user"]["email"] == "asha@example.com"

    def test_admin_sees_expanded_roster(self):
        data = rules.present_event(self.event, {"user_id": 50, "role": "admin"}, self.profiles)
        assert len(data["participants"]) == 2

    def test_missing_profile_falls_back_to_id(self):
        data = rules.present_event(self.event, {"user_id": 50, "role": "admin"}, {})
        assert data["participants"][0]["user"] == {"id": 2}

    def test_registration_status_for_every_viewer(self):
        deadline = self.event.registration.deadline
        before = rules.present_event(self.event, None, now=deadline - timedelta(seconds=1))
        at = rules.present_event(self.event, {"user_id": ORGANIZER_ID, "role": "student"}, now=deadline)
        assert before["registration_status"] == "open"
        assert at["registration_status"] == "closed"
