"""Tests for the calibration objective functions."""

import numpy as np
import pandas as pd
import pytest

from streamfall.calibration import dependent_obj_func, level_obj_func, obj_func, observed_for
from streamfall.core.exceptions import EvaluationError, ValidationError
from streamfall.evaluation import rmse

from fixtures.node_fixtures import LinearNode, TankNode, linear_flow

pytestmark = [pytest.mark.unit, pytest.mark.calibration]


@pytest.fixture
def observed_pair(forcing):
    """Observations for a flow node A feeding tank B."""
    return pd.DataFrame({
        'A': linear_flow(forcing, 0.6, 1.0),
        'B': np.linspace(8.0, 14.0, len(forcing)),
    })


def _reference_scores(params, forcing, observed):
    """Flow score of A and level score of B from an explicit run."""
    upstream = LinearNode('A', gain=params[0], baseflow=params[1])
    tank = TankNode('B')
    upstream.run(forcing)
    tank.run(forcing, inflow=upstream.outflow)
    return rmse(observed['A'], upstream.outflow), rmse(observed['B'], tank.level)


class TestObservedFor:

    def test_dataframe_column(self, observed_pair):
        np.testing.assert_array_equal(observed_for(observed_pair, 'A'), observed_pair['A'].to_numpy())

    def test_mapping(self):
        np.testing.assert_array_equal(observed_for({'A': [1, 2]}, 'A'), [1.0, 2.0])

    def test_missing_series(self, observed_pair):
        with pytest.raises(EvaluationError, match="No observations for node C"):
            observed_for(observed_pair, 'C')

    def test_unsupported_container(self):
        with pytest.raises(EvaluationError, match="DataFrame or a mapping"):
            observed_for([1.0, 2.0], 'A')


class TestObjFunc:
    """Tests for the single-node flow objective."""

    def test_true_parameters_score_zero(self, forcing):
        node = LinearNode('A')
        observed = linear_flow(forcing, 0.6, 1.0)
        assert obj_func([0.6, 1.0], node, forcing, observed, rmse) == pytest.approx(0.0)

    def test_parameters_applied(self, forcing):
        node = LinearNode('A')
        observed = linear_flow(forcing, 0.6, 1.0)
        obj_func([0.6, 3.0], node, forcing, observed, rmse)
        assert node.get_parameter('baseflow') == 3.0

    def test_repeatable_and_reset(self, forcing):
        node = LinearNode('A')
        observed = linear_flow(forcing, 0.6, 1.0)

        first = obj_func([1.1, 0.2], node, forcing, observed, rmse)
        second = obj_func([1.1, 0.2], node, forcing, observed, rmse)

        assert first == second
        assert node.outflow.size == 0

    def test_missing_observations_skipped(self, short_forcing):
        node = LinearNode('A')
        observed = [1.0, np.nan, 3.0]
        assert obj_func([1.0, 0.0], node, short_forcing, observed, rmse) == pytest.approx(0.0)

    def test_node_reset_when_metric_fails(self, short_forcing):
        node = LinearNode('A')

        def failing(obs, sim):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            obj_func([1.0, 0.0], node, short_forcing, [1.0, 2.0, 3.0], failing)
        assert node.outflow.size == 0

    def test_run_options_forwarded(self, short_forcing):
        node = LinearNode('A')
        obj_func([1.0, 0.0], node, short_forcing, [1.0, 2.0, 3.0], rmse, extraction='ext', exchange='exc')
        assert node.run_options == [{'extraction': 'ext', 'exchange': 'exc'}]


class TestLevelObjFunc:

    def test_scores_level(self, short_forcing):
        tank = TankNode('B')
        tank.run(short_forcing)
        observed = tank.level.copy()
        tank.reset()

        assert level_obj_func([0.5], tank, short_forcing, observed, rmse) == pytest.approx(0.0)
        assert level_obj_func([0.9], tank, short_forcing, observed, rmse) > 0.0
        assert tank.level.size == 0


class TestDependentObjFunc:
    """Tests for scoring a node together with its downstream neighbour."""

    params = [0.9, 0.4]

    def test_weighting_zero_is_level_only(self, forcing, observed_pair):
        _, level_score = _reference_scores(self.params, forcing, observed_pair)
        score = dependent_obj_func(
            self.params, LinearNode('A'), TankNode('B'), forcing, observed_pair, rmse, weighting=0.0
        )
        assert score == pytest.approx(level_score)

    def test_weighting_one_is_flow_only(self, forcing, observed_pair):
        flow_score, _ = _reference_scores(self.params, forcing, observed_pair)
        score = dependent_obj_func(
            self.params, LinearNode('A'), TankNode('B'), forcing, observed_pair, rmse, weighting=1.0
        )
        assert score == pytest.approx(flow_score)

    @pytest.mark.parametrize("w", [0.25, 0.5, 0.8])
    def test_mixed_weighting(self, w, forcing, observed_pair):
        flow_score, level_score = _reference_scores(self.params, forcing, observed_pair)
        score = dependent_obj_func(
            self.params, LinearNode('A'), TankNode('B'), forcing, observed_pair, rmse, weighting=w
        )
        assert score == pytest.approx(w * flow_score + (1 - w) * level_score)

    def test_separate_flow_metric(self, forcing, observed_pair):
        def constant(obs, sim):
            return 7.0

        score = dependent_obj_func(
            self.params, LinearNode('A'), TankNode('B'), forcing, observed_pair, rmse,
            weighting=1.0, flow_metric=constant,
        )
        assert score == 7.0

    def test_level_only_ignores_missing_upstream_observations(self, forcing, observed_pair):
        observed = observed_pair.drop(columns=['A'])
        score = dependent_obj_func(
            self.params, LinearNode('A'), TankNode('B'), forcing, observed, rmse, weighting=0.0
        )
        assert np.isfinite(score)

    def test_reservoir_upstream_scores_zero(self, forcing):
        score = dependent_obj_func(
            [0.3], TankNode('R'), LinearNode('D'), forcing, {}, rmse
        )
        assert score == 0.0

    def test_flow_downstream_scores_upstream_outflow(self, forcing):
        observed = {'A': linear_flow(forcing, 0.6, 1.0)}
        score = dependent_obj_func(
            [0.6, 1.0], LinearNode('A'), LinearNode('D'), forcing, observed, rmse
        )
        assert score == pytest.approx(0.0)

    def test_downstream_receives_upstream_outflow(self, short_forcing):
        upstream = LinearNode('A')
        downstream = LinearNode('D')
        seen = {}
        original_run = downstream.run

        def spy(forcing, inflow=None, **kwargs):
            seen['inflow'] = np.array(inflow)
            original_run(forcing, inflow=inflow, **kwargs)

        downstream.run = spy
        dependent_obj_func([2.0, 1.0], upstream, downstream, short_forcing, {'A': [3.0, 5.0, 7.0]}, rmse)

        np.testing.assert_allclose(seen['inflow'], [3.0, 5.0, 7.0])

    def test_both_nodes_reset(self, forcing, observed_pair):
        upstream, tank = LinearNode('A'), TankNode('B')
        dependent_obj_func(self.params, upstream, tank, forcing, observed_pair, rmse)
        assert upstream.outflow.size == 0
        assert tank.outflow.size == 0
        assert tank.level.size == 0

    def test_repeatable(self, forcing, observed_pair):
        upstream, tank = LinearNode('A'), TankNode('B')
        scores = [
            dependent_obj_func(self.params, upstream, tank, forcing, observed_pair, rmse, weighting=0.3)
            for _ in range(3)
        ]
        assert scores[0] == scores[1] == scores[2]

    @pytest.mark.parametrize("w", [-0.1, 1.5])
    def test_weighting_out_of_range(self, w, forcing, observed_pair):
        with pytest.raises(ValidationError, match="weighting"):
            dependent_obj_func(self.params, LinearNode('A'), TankNode('B'), forcing, observed_pair, rmse, weighting=w)
