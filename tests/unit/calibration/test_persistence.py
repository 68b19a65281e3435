"""Tests for saving and loading calibration artifacts."""

import pickle

import numpy as np
import pytest

from streamfall.calibration import calibrate, load_calibration, save_calibration
from streamfall.core.exceptions import FileOperationError, OptimizationError
from streamfall.evaluation import rmse

pytestmark = [pytest.mark.unit, pytest.mark.calibration]


@pytest.fixture
def calibrated(forcing, chain_network, chain_observed):
    return calibrate(
        chain_network, 'A', forcing, chain_observed, rmse,
        MaxTime=30, MaxSteps=50, RandomSeed=0, extraction={'A': [0.0]},
    )


class TestSaveAndLoad:

    def test_round_trip(self, tmp_path, calibrated):
        result, optimizer = calibrated
        path = save_calibration(result, optimizer, tmp_path / 'A.pkl')

        loaded_result, loaded_optimizer = load_calibration(path)

        assert path == tmp_path / 'A.pkl'
        assert loaded_result == result
        assert loaded_optimizer == optimizer
        np.testing.assert_array_equal(loaded_result.best_candidate, result.best_candidate)

    def test_string_path(self, tmp_path, calibrated):
        path = save_calibration(*calibrated, str(tmp_path / 'A.pkl'))
        assert load_calibration(str(path))[0] == calibrated[0]

    def test_default_temporary_path(self, tmp_path, monkeypatch, calibrated):
        monkeypatch.chdir(tmp_path)
        path = save_calibration(*calibrated)

        assert path.parent == tmp_path
        assert path.name.startswith('temp')
        assert path.suffix == '.tmp'
        assert path.exists()

    def test_temporary_paths_unique(self, tmp_path, monkeypatch, calibrated):
        monkeypatch.chdir(tmp_path)
        assert save_calibration(*calibrated) != save_calibration(*calibrated)

    def test_loaded_optimizer_cannot_rerun(self, tmp_path, calibrated):
        path = save_calibration(*calibrated, tmp_path / 'A.pkl')
        _, optimizer = load_calibration(path)

        assert optimizer.callback is None
        with pytest.raises(OptimizationError):
            optimizer.run()


class TestLoadErrors:

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileOperationError, match="loading calibration"):
            load_calibration(tmp_path / 'missing.pkl')

    def test_not_a_pickle(self, tmp_path):
        path = tmp_path / 'garbage.pkl'
        path.write_text("not a calibration")
        with pytest.raises(FileOperationError):
            load_calibration(path)

    def test_wrong_payload(self, tmp_path):
        path = tmp_path / 'dict.pkl'
        with open(path, 'wb') as f:
            pickle.dump({'result': None}, f)

        with pytest.raises(FileOperationError, match="does not contain a calibration"):
            load_calibration(path)

    def test_unwritable_location(self, tmp_path, calibrated):
        with pytest.raises(FileOperationError, match="saving calibration"):
            save_calibration(*calibrated, tmp_path / 'missing_dir' / 'A.pkl')
