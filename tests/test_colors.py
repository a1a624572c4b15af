import pytest

from calibration.evaluations.colors import PALETTE, performance_color, performance_level


@pytest.mark.parametrize(
    "score, level",
    [
        (5.0, "excellent"),
        (3.3, "excellent"),
        (3.29999, "high"),
        (3.0, "high"),
        (2.999, "medium"),
        (2.71, "medium"),
        (2.7099, "low"),
        (1.0, "low"),
        (None, "medium"),
    ],
)
def test_performance_level_bands(score, level):
    assert performance_level(score) == level


def test_performance_color_matches_palette():
    assert performance_color(3.5).background == "#271DED"
    assert performance_color(3.1).background == "#257916"
    assert performance_color(2.8).text == "#000000"
    assert performance_color(2.0) is PALETTE["low"]
    assert performance_color(None).to_dict() == {"level": "medium", "background": "#FFDB3D", "text": "#000000"}
