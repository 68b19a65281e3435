"""Tests for calibration orchestration over stream networks."""

import functools
import logging
from unittest import mock

import numpy as np
import pandas as pd
import pytest

from streamfall.calibration import (
    Calibrator,
    build_objective,
    calibrate,
    calibrate_network,
    calibrate_node,
    dependent_obj_func,
    level_obj_func,
    obj_func,
    resolve_metric,
)
from streamfall.calibration import orchestrator
from streamfall.core.config import CalibrationConfig
from streamfall.core.exceptions import EvaluationError, ValidationError
from streamfall.evaluation import rmse
from streamfall.network import create_network
from streamfall.optimization import StopReason

from fixtures.node_fixtures import LinearNode, TankNode, linear_flow

pytestmark = [pytest.mark.unit, pytest.mark.calibration]


FAST = {'MaxTime': 30, 'MaxSteps': 60, 'RandomSeed': 0}


@pytest.fixture
def recorded_calibrations():
    """Patch run_calibration, recording the name of every calibrated node."""
    calls = []
    original = orchestrator.run_calibration

    def recording(node, *args, **kwargs):
        calls.append(node.name)
        return original(node, *args, **kwargs)

    with mock.patch.object(orchestrator, 'run_calibration', side_effect=recording):
        yield calls


@pytest.fixture
def reservoir_observed(forcing):
    return pd.DataFrame({
        'A': linear_flow(forcing, 0.6, 1.0),
        'B': np.linspace(8.0, 14.0, len(forcing)),
    })


class TestResolveMetric:

    def test_single_metric_for_every_node(self):
        objective = resolve_metric('NSE', 'anything')
        assert objective([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(-1.0)

    def test_per_node_mapping(self):
        assert resolve_metric({'A': rmse}, 'A') is rmse

    def test_missing_node_without_default(self):
        with pytest.raises(EvaluationError, match="No metric selected for node B"):
            resolve_metric({'A': rmse}, 'B')

    def test_missing_node_with_default(self):
        def fallback(obs, sim):
            return 0.0

        assert resolve_metric({'A': rmse}, 'B', default=fallback) is fallback


class TestBuildObjective:
    """Objective selection from the node and its downstream neighbour."""

    def test_flow_node(self, forcing, chain_network, chain_observed):
        config = CalibrationConfig()
        objective = build_objective(
            chain_network['C'], chain_network['D'], forcing, chain_observed,
            functools.partial(resolve_metric, rmse), config,
        )
        assert objective.func is obj_func
        assert objective.keywords['node'] is chain_network['C']

    def test_downstream_reservoir(self, forcing, reservoir_network, reservoir_observed):
        config = CalibrationConfig.from_options(weighting=0.25)
        level_metric, flow_metric = mock.Mock(), mock.Mock()
        objective = build_objective(
            reservoir_network['A'], reservoir_network['B'], forcing, reservoir_observed,
            functools.partial(resolve_metric, {'A': flow_metric, 'B': level_metric}), config,
        )
        assert objective.func is dependent_obj_func
        assert objective.keywords['weighting'] == 0.25
        assert objective.keywords['metric'] is level_metric
        assert objective.keywords['flow_metric'] is flow_metric

    def test_downstream_reservoir_flow_metric_falls_back(self, forcing, reservoir_network, reservoir_observed):
        level_metric = mock.Mock()
        objective = build_objective(
            reservoir_network['A'], reservoir_network['B'], forcing, reservoir_observed,
            functools.partial(resolve_metric, {'B': level_metric}), CalibrationConfig(),
        )
        assert objective.keywords['flow_metric'] is level_metric

    def test_standalone_reservoir(self, forcing, reservoir_network, reservoir_observed):
        objective = build_objective(
            reservoir_network['B'], None, forcing, reservoir_observed,
            functools.partial(resolve_metric, rmse), CalibrationConfig(),
        )
        assert objective.func is level_obj_func

    def test_missing_observations(self, forcing, chain_network):
        with pytest.raises(EvaluationError, match="No observations for node D"):
            build_objective(
                chain_network['D'], None, forcing, pd.DataFrame({'A': [1.0]}),
                functools.partial(resolve_metric, rmse), CalibrationConfig(),
            )


class TestCalibrate:
    """Tests for calibrating a target node and its upstream catchment."""

    def test_upstream_nodes_first(self, forcing, chain_network, chain_observed, recorded_calibrations):
        calibrate(chain_network, 'D', forcing, chain_observed, rmse, **FAST)
        assert recorded_calibrations == ['A', 'B', 'C', 'D']

    def test_target_by_id(self, forcing, chain_network, chain_observed, recorded_calibrations):
        calibrate(chain_network, 3, forcing, chain_observed, rmse, **FAST)
        assert recorded_calibrations == ['A', 'B', 'C']

    def test_calibrate_all_false(self, forcing, chain_network, chain_observed, recorded_calibrations):
        calibrate(chain_network, 'D', forcing, chain_observed, rmse, calibrate_all=False, **FAST)
        assert recorded_calibrations == ['D']

    def test_recovers_parameters(self, forcing, chain_network, chain_observed):
        result, optimizer = calibrate(
            chain_network, 'A', forcing, chain_observed, 'RMSE',
            MaxTime=30, MaxSteps=1500, RandomSeed=1,
        )

        np.testing.assert_allclose(result.best_candidate, [0.8, 0.5], atol=0.05)
        assert chain_network['A'].get_parameter('gain') == pytest.approx(result.best_candidate[0])
        assert optimizer.result is result

    def test_commits_best_parameters(self, forcing, chain_network, chain_observed):
        calibrator = Calibrator(chain_network, forcing, chain_observed, rmse, **FAST)
        calibrator.calibrate('C')

        for node_id, (result, _) in calibrator.outcomes.items():
            node = chain_network[node_id]
            committed = [node.get_parameter('gain'), node.get_parameter('baseflow')]
            np.testing.assert_array_equal(committed, result.best_candidate)

    def test_target_fitness_stops_early(self, forcing, chain_network, chain_observed):
        result, _ = calibrate(
            chain_network, 'A', forcing, chain_observed, rmse,
            TargetFitness=0.5, MaxTime=30, MaxSteps=100000, RandomSeed=0,
        )
        assert result.stop_reason is StopReason.CANCELLED
        assert result.best_fitness < 0.5

    def test_missing_metric(self, forcing, chain_network, chain_observed):
        with pytest.raises(EvaluationError, match="No metric selected for node B"):
            calibrate(chain_network, 'C', forcing, chain_observed, {'A': rmse}, **FAST)

    def test_missing_observations(self, forcing, chain_network, chain_observed):
        with pytest.raises(EvaluationError, match="No observations for node D"):
            calibrate(chain_network, 'D', forcing, chain_observed.drop(columns=['D']), rmse, **FAST)

    def test_forcing_required(self, chain_network, chain_observed):
        with pytest.raises(ValidationError, match="forcing must not be None"):
            calibrate(chain_network, 'A', None, chain_observed, rmse, **FAST)

    def test_run_options_passed_to_nodes(self, forcing, chain_network, chain_observed):
        _, optimizer = calibrate(
            chain_network, 'A', forcing, chain_observed, rmse,
            extraction='ext', exchange='exc', **FAST,
        )

        runs = chain_network['A'].run_options
        assert runs
        assert all(r == {'extraction': 'ext', 'exchange': 'exc'} for r in runs)
        assert optimizer.config.extraction is None
        assert optimizer.config.exchange is None

    def test_logs_best_parameters(self, forcing, chain_network, chain_observed, test_logger, caplog):
        with caplog.at_level(logging.INFO, logger=test_logger.name):
            calibrate(chain_network, 'A', forcing, chain_observed, rmse, logger=test_logger, **FAST)

        assert "Calibrating A" in caplog.text
        assert "Calibrated 1 (A), with score:" in caplog.text
        assert "Best Params: {'gain':" in caplog.text


class TestReservoirCalibration:
    """Calibration around a reservoir node."""

    def test_reservoir_level_independent_of_upstream(self, short_forcing, reservoir_spec):
        observed = {'A': [1.0, 2.0, 3.0], 'B': [10.0, 10.0, 10.0]}
        results = []
        for gain in (0.1, 1.9):
            sn = create_network('Reservoir', reservoir_spec)
            sn['A'].update_parameters(gain, 0.0)
            result, _ = calibrate(
                sn, 'B', short_forcing, observed, rmse, calibrate_all=False, weighting=0.0, **FAST
            )
            results.append(result)

        np.testing.assert_array_equal(results[0].best_candidate, results[1].best_candidate)
        assert results[0].best_fitness == results[1].best_fitness

    def test_upstream_node_uses_dependent_objective(
        self, forcing, reservoir_network, reservoir_observed
    ):
        with mock.patch.object(
            orchestrator, 'build_objective', wraps=orchestrator.build_objective
        ) as spy:
            calibrate(reservoir_network, 'B', forcing, reservoir_observed, rmse, **FAST)

        nodes = [c.args[0].name for c in spy.call_args_list]
        next_nodes = [c.args[1] for c in spy.call_args_list]
        assert nodes == ['A', 'B']
        assert next_nodes == [reservoir_network['B'], None]

    def test_upstream_level_only_score(self, forcing, reservoir_network, reservoir_observed):
        result, _ = calibrate(
            reservoir_network, 'A', forcing, reservoir_observed.drop(columns=['A']), rmse,
            weighting=0.0, **FAST,
        )
        assert np.isfinite(result.best_fitness)


class TestCalibrator:
    """Tests for repeated calibration with one Calibrator."""

    def test_shared_ancestor_recalibrated(self, forcing, chain_network, chain_observed, recorded_calibrations):
        calibrator = Calibrator(chain_network, forcing, chain_observed, rmse, **FAST)
        calibrator.calibrate('C')
        calibrator.calibrate('D')

        assert recorded_calibrations == ['A', 'B', 'C', 'A', 'B', 'C', 'D']
        assert set(calibrator.outcomes) == {1, 2, 3, 4}

    def test_skip_calibrated(self, forcing, chain_network, chain_observed, recorded_calibrations):
        calibrator = Calibrator(chain_network, forcing, chain_observed, rmse, skip_calibrated=True, **FAST)
        first = calibrator.calibrate('C')
        calibrator.calibrate('D')

        assert recorded_calibrations == ['A', 'B', 'C', 'D']
        assert calibrator.outcomes[3] is first

    def test_last_calibration_wins(self, forcing, chain_network, chain_observed):
        calibrator = Calibrator(chain_network, forcing, chain_observed, rmse, **FAST)
        calibrator.calibrate('A')
        first = calibrator.outcomes[1]
        calibrator.calibrate('A')
        assert calibrator.outcomes[1] is not first

    def test_metric_for(self, forcing, chain_network, chain_observed):
        calibrator = Calibrator(chain_network, forcing, chain_observed, {'A': rmse})
        assert calibrator.metric_for('A') is rmse

    def test_config_and_options_merge(self, forcing, chain_network, chain_observed):
        calibrator = Calibrator(
            chain_network, forcing, chain_observed, rmse,
            config={'MaxTime': 5}, weighting=0.1,
        )
        assert calibrator.config.max_time == 5.0
        assert calibrator.config.weighting == 0.1


class TestCalibrateNetwork:

    def test_every_node_calibrated(self, forcing, chain_network, chain_observed, recorded_calibrations):
        results = calibrate_network(chain_network, forcing, chain_observed, rmse, **FAST)

        assert set(results) == {'A', 'B', 'C', 'D'}
        assert recorded_calibrations == ['A', 'B', 'C', 'D']
        assert all(r.num_evaluations == FAST['MaxSteps'] for r in results.values())

    def test_each_outlet(self, forcing, recorded_calibrations):
        sn = create_network('Two Catchments', {
            'A': {'node_type': 'LinearNode', 'outlets': ['B']},
            'B': {'node_type': 'LinearNode'},
            'X': {'node_type': 'LinearNode'},
        })
        observed = {name: linear_flow(forcing, 1.0, 0.0) for name in 'ABX'}

        results = calibrate_network(sn, forcing, observed, rmse, **FAST)

        assert set(results) == {'A', 'B', 'X'}
        assert recorded_calibrations == ['A', 'B', 'X']


class TestCalibrateNode:

    def test_single_series(self, forcing):
        node = LinearNode('Gauge')
        observed = linear_flow(forcing, 1.3, 2.0)

        result, _ = calibrate_node(node, forcing, observed, 'RMSE', MaxSteps=1500, MaxTime=30, RandomSeed=2)

        np.testing.assert_allclose(result.best_candidate, [1.3, 2.0], atol=0.05)
        assert node.get_parameter('gain') == pytest.approx(result.best_candidate[0])

    def test_with_downstream_reservoir(self, forcing, reservoir_observed):
        node = LinearNode('A')
        tank = TankNode('B')

        result, _ = calibrate_node(node, forcing, reservoir_observed, rmse, next_node=tank, weighting=0.5, **FAST)
        assert np.isfinite(result.best_fitness)
        assert tank.level.size == 0
