"""Tests for hotswap configuration overrides."""

import pytest

from stackswap.config import EcsHotswapProperties, HotswapPropertyOverrides
from stackswap.errors import HotswapConfigurationError


def test_negative_minimum_rejected():
    with pytest.raises(HotswapConfigurationError, match="minimum-healthy-percent"):
        EcsHotswapProperties(minimum_healthy_percent=-1)


def test_negative_maximum_rejected():
    with pytest.raises(HotswapConfigurationError, match="maximum-healthy-percent"):
        EcsHotswapProperties(maximum_healthy_percent=-10)


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        EcsHotswapProperties(minimum_healthy_percent=-5)


def test_omitted_minimum_defaults_to_zero():
    props = EcsHotswapProperties(maximum_healthy_percent=200)

    assert props.minimum_healthy_percent == 0
    assert props.maximum_healthy_percent == 200


def test_is_empty_only_without_overrides():
    assert EcsHotswapProperties().is_empty()
    assert EcsHotswapProperties(minimum_healthy_percent=0).is_empty()
    assert not EcsHotswapProperties(minimum_healthy_percent=50).is_empty()
    assert not EcsHotswapProperties(maximum_healthy_percent=150).is_empty()


def test_deployment_configuration_defaults():
    assert EcsHotswapProperties().deployment_configuration() == {"minimumHealthyPercent": 0}


def test_deployment_configuration_with_maximum():
    props = EcsHotswapProperties(minimum_healthy_percent=50, maximum_healthy_percent=200)

    assert props.deployment_configuration() == {
        "minimumHealthyPercent": 50,
        "maximumPercent": 200,
    }


def test_overrides_default_to_empty_ecs_properties():
    overrides = HotswapPropertyOverrides()

    assert overrides.ecs_hotswap_properties.is_empty()
