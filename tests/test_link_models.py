"""
Tests for the API payload models in configs/link_models.py.
"""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from configs.link_models import MechanismModel
from configs.link_models import OptimizationOptionsModel
from configs.link_models import TargetPathModel
from linkage_tools.mechanism import DEFAULT_ROD_LENGTH


class TestMechanismModel:
    """Tests for MechanismModel."""

    def test_camel_case(self):
        config = MechanismModel.model_validate({
            'type': 'piston', 'crankLength': 60, 'couplerLength': 160, 'sliderOffset': 40,
        }).to_config()
        assert config.mech_type == 'piston'
        assert config.crank_length == 60
        assert config.slider_offset == 40

    def test_snake_case(self):
        config = MechanismModel.model_validate({'type': 'yoke', 'crank_length': 33}).to_config()
        assert config.crank_length == 33

    def test_defaults_resolved(self):
        config = MechanismModel.model_validate({'type': '5bar', 'gearRatio': 2.0}).to_config()
        assert config.speed2 == 2.0
        assert config.rod_length == DEFAULT_ROD_LENGTH

    def test_zero_rod_length(self):
        config = MechanismModel.model_validate({'type': '5bar', 'rodLength': 0}).to_config()
        assert config.rod_length == DEFAULT_ROD_LENGTH

    def test_extra_fields_ignored(self):
        model = MechanismModel.model_validate({'type': 'crank', 'isDragging': True})
        assert model.type == 'crank'

    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            MechanismModel.model_validate({'type': 'gearbox'})

    def test_non_finite_rejected(self):
        with pytest.raises(ValidationError):
            MechanismModel.model_validate({'type': 'crank', 'crankLength': float('inf')})


class TestTargetPathModel:
    """Tests for TargetPathModel."""

    def test_pairs_and_objects(self):
        model = TargetPathModel(points=[[0, 1], {'x': 2, 'y': 3}])
        assert model.to_target_path().positions == [(0.0, 1.0), (2.0, 3.0)]

    def test_none_is_empty(self):
        assert len(TargetPathModel(points=None).to_target_path()) == 0

    def test_bad_point(self):
        with pytest.raises(ValidationError):
            TargetPathModel(points=[[1, 2, 3]])


class TestOptimizationOptionsModel:
    """Tests for OptimizationOptionsModel."""

    def test_defaults(self):
        options = OptimizationOptionsModel.model_validate({}).to_options()
        assert options.forced_type is None
        assert not options.exclude_current
        assert options.seed_mechanism is None
        assert not options.timed

    def test_full(self):
        options = OptimizationOptionsModel.model_validate({
            'forcedType': '4bar',
            'excludeCurrent': True,
            'seedMechanism': {'type': 'yoke', 'crankLength': 40},
            'durationSeconds': 12,
        }).to_options()
        assert options.forced_type == '4bar'
        assert options.exclude_current
        assert options.seed_mechanism.mech_type == 'yoke'
        assert options.duration_seconds == 12.0
        assert options.timed

    def test_duration_limits(self):
        with pytest.raises(ValidationError):
            OptimizationOptionsModel.model_validate({'durationSeconds': -1})
        with pytest.raises(ValidationError):
            OptimizationOptionsModel.model_validate({'durationSeconds': 10_000})
