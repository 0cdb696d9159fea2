import pytest

from event_hub_api.app.services.note_service import calculate_rating


class TestCalculateRating:

    def test_no_ratings(self):
        assert calculate_rating([]) == (0.0, 0)

    def test_average_of_three(self):
        assert calculate_rating([5, 3, 4]) == (4.0, 3)

    @pytest.mark.parametrize(
        "values, expected",
        [
            ([1, 3, 4], 2.7),
            ([4, 5], 4.5),
            ([5, 4, 4, 4], 4.3),
            ([1, 2, 2], 1.7),
        ],
    )
    def test_rounded_to_one_decimal(self, values, expected):
        rating, count = calculate_rating(values)
        assert rating == expected
        assert count == len(values)

    def test_accepts_generators(self):
        assert calculate_rating(r for r in (2, 2)) == (2.0, 2)
