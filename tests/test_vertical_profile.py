import numpy as np
import pytest

from common.errors import InvalidInput
from wind_field.vertical_profile import (
    DEFAULT_PROFILE,
    VerticalProfileModel,
    extrapolate,
)


def test_scenario_five_ms_at_fifty_meters():
    """5 m/s at 10 m projects to about 6.19 m/s at 50 m"""
    assert extrapolate(5.0, 10, 50, 1 / 7) == pytest.approx(6.19, abs=0.005)


@pytest.mark.parametrize("speed", [0.0, 0.5, 7.3, 42.0])
@pytest.mark.parametrize("height", [0.1, 10.0, 120.0])
@pytest.mark.parametrize("alpha", [0.0, 1 / 7, 0.4, -0.3])
def test_same_height_is_identity(speed, height, alpha):
    assert extrapolate(speed, height, height, alpha) == pytest.approx(speed)


def test_monotonic_in_height_for_positive_alpha():
    heights = [10, 20, 50, 80, 100, 120]
    speeds = [extrapolate(6.0, 10, h) for h in heights]
    assert speeds == sorted(speeds)
    assert speeds[0] == pytest.approx(6.0)


def test_array_input_keeps_shape():
    out = extrapolate(np.array([1.0, 2.0, 4.0]), 10, 80)
    assert out.shape == (3,)
    assert out[2] == pytest.approx(2 * out[1])


def test_scalar_input_returns_float():
    assert isinstance(extrapolate(3.0, 10, 20), float)


@pytest.mark.parametrize("ref_h, target_h", [(0, 10), (10, 0), (-5, 10), (10, float("nan"))])
def test_non_positive_height_rejected(ref_h, target_h):
    with pytest.raises(InvalidInput):
        extrapolate(5.0, ref_h, target_h)


def test_negative_speed_rejected():
    with pytest.raises(InvalidInput):
        extrapolate(-1.0, 10, 20)


def test_invalid_input_is_a_value_error():
    with pytest.raises(ValueError):
        extrapolate(5.0, 10, -1)


def test_terrain_profiles():
    urban = VerticalProfileModel.for_terrain("urban")
    assert urban.alpha == pytest.approx(0.40)
    # rougher terrain means a steeper increase with height
    assert urban.speed_at(5.0, 100) > DEFAULT_PROFILE.speed_at(5.0, 100)


def test_unknown_terrain_rejected():
    with pytest.raises(InvalidInput):
        VerticalProfileModel.for_terrain("swamp")


def test_profile_with_bad_reference_height_rejected():
    with pytest.raises(InvalidInput):
        VerticalProfileModel(reference_height=0)
