"""Tests for metric wrappers that derive new metrics from existing ones."""

import numpy as np
import pytest

from streamfall.core.exceptions import ValidationError
from streamfall.evaluation import (
    bound,
    inverse_metric,
    kge,
    mean_inverse,
    naive_split_metric,
    normalize,
    nse,
    rmse,
    split,
)

pytestmark = [pytest.mark.unit, pytest.mark.evaluation]


@pytest.fixture
def mean_predictor():
    obs = np.array([1.0, 2.0, 3.0])
    return obs, np.full(3, 2.0)


class TestBoundAndNormalize:

    def test_bound_of_zero(self, mean_predictor):
        assert bound(nse)(*mean_predictor) == pytest.approx(0.0)

    def test_normalize_of_zero(self, mean_predictor):
        assert normalize(nse)(*mean_predictor) == pytest.approx(0.5)

    def test_perfect_score_preserved(self):
        obs = np.array([1.0, 2.0, 4.0])
        assert bound(kge)(obs, obs) == pytest.approx(1.0)
        assert normalize(kge)(obs, obs) == pytest.approx(1.0)

    def test_names(self):
        assert bound(kge).__name__ == 'bounded_kge'
        assert normalize(nse).__name__ == 'normalized_nse'

    def test_arguments_forwarded(self, mean_predictor):
        scaled = normalize(kge)(*mean_predictor, scaling=(0.0, 0.0, 1.0))
        assert scaled == pytest.approx(1.0)


class TestInverseMetric:

    def test_perfect_fit(self):
        obs = np.array([1.0, 2.0, 4.0, 5.0])
        assert inverse_metric(obs, obs, nse) == pytest.approx(1.0)

    def test_zero_flows_dropped_from_inverse_only(self):
        obs = np.array([0.0, 1.0, 2.0, 4.0])
        sim = np.array([0.0, 2.0, 2.0, 4.0])
        seen = []

        def recording(o, s):
            seen.append(len(o))
            return rmse(o, s)

        inverse_metric(obs, sim, recording)
        assert seen == [4, 3]

    def test_comb_method(self):
        obs = np.array([1.0, 2.0])
        sim = np.array([2.0, 2.0])
        # Raw rmse sqrt(0.5); inverse rmse sqrt(0.125)
        assert inverse_metric(obs, sim, rmse, comb_method=np.max) == pytest.approx(np.sqrt(0.5))

    def test_mean_inverse_factory(self):
        obs = np.array([1.0, 2.0])
        sim = np.array([2.0, 2.0])
        metric = mean_inverse(rmse)
        assert metric.__name__ == 'mean_inverse_rmse'
        assert metric(obs, sim) == pytest.approx(inverse_metric(obs, sim, rmse))


class TestSplitMetric:

    def test_chunk_scores(self):
        obs = np.array([1.0, 2.0, 3.0, 4.0])
        sim = np.array([1.0, 2.0, 3.0, 6.0])
        scores = naive_split_metric(obs, sim, n_members=2, metric=rmse)
        assert scores == pytest.approx([0.0, np.sqrt(2.0)])

    def test_remainder_chunk(self):
        obs = np.arange(1.0, 6.0)
        scores = naive_split_metric(obs, obs, n_members=2, metric=rmse)
        assert len(scores) == 3

    def test_default_metric_is_nnse(self):
        obs = np.array([1.0, 2.0, 3.0, 1.0, 2.0, 3.0])
        sim = np.array([1.0, 2.0, 3.0, 2.0, 2.0, 2.0])
        # NSE of 1 and 0 normalize to 1 and 1/2
        scores = naive_split_metric(obs, sim, n_members=3)
        assert scores == pytest.approx([1.0, 0.5])

    def test_split_combines(self):
        obs = np.array([1.0, 2.0, 3.0, 4.0])
        sim = np.array([1.0, 2.0, 3.0, 6.0])
        assert split(rmse, n_members=2)(obs, sim) == pytest.approx(np.sqrt(2.0) / 2)
        assert split(rmse, n_members=2, comb_method=np.max)(obs, sim) == pytest.approx(np.sqrt(2.0))

    def test_invalid_chunk_size(self):
        with pytest.raises(ValidationError, match="n_members"):
            naive_split_metric([1.0], [1.0], n_members=0)

    def test_length_mismatch(self):
        with pytest.raises(ValidationError, match="differ in length"):
            naive_split_metric([1.0, 2.0], [1.0], n_members=1)
