"""Tests for weight tuning from validated predictions."""
from datetime import timedelta

import numpy as np
import pytest

from conftest import GAME_DAY, make_prediction
from src.data.store import StoreUnavailableError
from src.features.vector import FeatureVector
from src.prediction.weights import DEFAULT_WEIGHTS, FACTORS, WEIGHT_MAX, WEIGHT_MIN, normalize_bounded
from src.tracking import InMemoryPredictionStore, OutcomeAnnotation, RunLog, WeightStore
from src.tracking.run_log import WEIGHT_TUNING
from src.tuning import WeightTuner, build_recommendations, compute_factor_accuracy, propose_weights
from src.tuning.weight_tuner import WEIGHT_TUNING_ERROR

AS_OF = GAME_DAY + timedelta(days=1)

# Form favours the home side, injuries favour the away side
SPLIT_FEATURES = FeatureVector.build(
    availability={"team_form": True, "injuries": True},
    home_form=8.0,
    away_form=4.0,
    home_injury_impact=6.0,
    away_injury_impact=0.0,
).to_dict()

FORM_ONLY = FeatureVector.build(home_form=8.0, away_form=4.0).to_dict()
INJURIES_ONLY = FeatureVector.build(home_injury_impact=6.0, away_injury_impact=0.0).to_dict()


class BrokenWeightStore(WeightStore):
    def current(self):
        raise StoreUnavailableError("weights volume not mounted")


def _validated(index, winner="H", features=SPLIT_FEATURES, is_fallback=False, created_at=None):
    """A validated home pick; it is correct when the home side won."""
    record = make_prediction(
        game_id=f"G-{index}",
        features=features,
        is_fallback=is_fallback,
        created_at=created_at or GAME_DAY - timedelta(hours=index + 1),
    )
    return record.with_outcome(OutcomeAnnotation(
        actual_outcome=winner,
        was_correct=winner == record.predicted_winner,
        margin_of_error=3.0,
        validated_at=AS_OF,
        actual_home_score=110.0 if winner == "H" else 100.0,
        actual_away_score=100.0 if winner == "H" else 110.0,
    ))


def _form_right_injuries_wrong():
    """15 correct picks where form was decisive, 10 wrong picks where injuries were."""
    records = [_validated(i, features=FORM_ONLY) for i in range(15)]
    records += [_validated(100 + i, winner="A", features=INJURIES_ONLY) for i in range(10)]
    return records


def _store_with(records):
    store = InMemoryPredictionStore()
    for record in records:
        store.insert(record)
    return store


def _assert_valid(weights):
    assert set(weights) == set(FACTORS)
    assert sum(weights.values()) == pytest.approx(1.0, abs=1e-6)
    assert all(WEIGHT_MIN - 1e-9 <= v <= WEIGHT_MAX + 1e-9 for v in weights.values())


class TestFactorAccuracy:
    """Tests for per-factor decisive accuracy."""

    def test_correct_prediction_counts_for_every_decisive_factor(self):
        """Injuries pointed away, yet the home pick was right: still a correct sample."""
        records = [_validated(i) for i in range(4)]
        accuracy = compute_factor_accuracy(records)

        assert accuracy["team_form"] == {"total": 4, "correct": 4, "accuracy_pct": 100.0}
        assert accuracy["injuries"] == {"total": 4, "correct": 4, "accuracy_pct": 100.0}
        # neutral factors never reached the threshold
        assert accuracy["head_to_head"]["total"] == 0
        assert set(accuracy) == set(FACTORS)

    def test_wrong_predictions_lower_decisive_factors(self):
        accuracy = compute_factor_accuracy(_form_right_injuries_wrong())
        assert accuracy["team_form"] == {"total": 15, "correct": 15, "accuracy_pct": 100.0}
        assert accuracy["injuries"] == {"total": 10, "correct": 0, "accuracy_pct": 0.0}

    def test_mixed_outcomes(self):
        records = [_validated(0), _validated(1), _validated(2, winner="A")]
        accuracy = compute_factor_accuracy(records)
        assert accuracy["team_form"]["total"] == 3
        assert accuracy["team_form"]["correct"] == 2
        assert accuracy["team_form"]["accuracy_pct"] == pytest.approx(66.67)

    def test_tie_is_never_correct(self):
        accuracy = compute_factor_accuracy([_validated(0, winner="tie")])
        assert accuracy["team_form"]["total"] == 1
        assert accuracy["team_form"]["correct"] == 0

    def test_threshold_controls_decisiveness(self):
        accuracy = compute_factor_accuracy([_validated(0)], decisive_threshold=5.0)
        assert accuracy["team_form"]["total"] == 0
        assert accuracy["injuries"]["total"] == 1

    def test_no_records(self):
        accuracy = compute_factor_accuracy([])
        assert all(stats["total"] == 0 for stats in accuracy.values())


class TestProposeWeights:
    """The proposal is always a valid weight set."""

    def test_damped_move_toward_accurate_factor(self):
        accuracy = {f: {"total": 0, "correct": 0, "accuracy_pct": 0.0} for f in FACTORS}
        accuracy["team_form"] = {"total": 10, "correct": 10, "accuracy_pct": 100.0}
        accuracy["injuries"] = {"total": 10, "correct": 0, "accuracy_pct": 0.0}

        proposed = propose_weights(dict(DEFAULT_WEIGHTS), accuracy)

        _assert_valid(proposed)
        assert proposed["team_form"] == pytest.approx(0.15 + 0.3 * (0.33 - 0.15))
        assert proposed["injuries"] == pytest.approx(0.18 * 0.7)
        assert proposed["weather"] == pytest.approx(DEFAULT_WEIGHTS["weather"])

    def test_no_measured_factors_keeps_weights(self):
        accuracy = {f: {"total": 0, "correct": 0, "accuracy_pct": 0.0} for f in FACTORS}
        proposed = propose_weights(dict(DEFAULT_WEIGHTS), accuracy)
        for factor in FACTORS:
            assert proposed[factor] == pytest.approx(DEFAULT_WEIGHTS[factor])

    @pytest.mark.parametrize("accuracy_pct", [0.0, 50.0, 100.0])
    def test_degenerate_uniform_accuracy(self, accuracy_pct):
        accuracy = {f: {"total": 5, "correct": 0, "accuracy_pct": accuracy_pct} for f in FACTORS}
        proposed = propose_weights(dict(DEFAULT_WEIGHTS), accuracy)
        _assert_valid(proposed)
        # every factor moves 30% of the way toward 0.1
        assert proposed["player_stats"] == pytest.approx(0.20 + 0.3 * (0.1 - 0.20))

    @pytest.mark.parametrize("seed", range(25))
    def test_random_accuracy_distributions(self, seed):
        rng = np.random.default_rng(seed)
        current = normalize_bounded({f: float(v) for f, v in zip(FACTORS, rng.random(len(FACTORS)))})
        accuracy = {
            f: {
                "total": int(rng.integers(0, 3)),
                "correct": 0,
                "accuracy_pct": float(rng.choice([0.0, 100.0, rng.uniform(0, 100)])),
            }
            for f in FACTORS
        }
        damping = float(rng.uniform(0.0, 1.0))
        _assert_valid(propose_weights(current, accuracy, damping=damping))


class TestWeightTuner:
    """Tests for tune_weights."""

    def test_insufficient_data(self, tmp_path):
        """15 validated predictions against a minimum of 20."""
        predictions = _store_with([_validated(i) for i in range(15)])
        weight_store = WeightStore(tmp_path / "weights")

        result = WeightTuner(predictions, weight_store=weight_store).tune_weights(as_of=AS_OF)

        assert result.status == "insufficient_data"
        assert result.success is True
        assert result.predictions_analyzed == 15
        assert result.minimum_required == 20
        assert result.proposed_weights == {}
        assert result.current_weights == DEFAULT_WEIGHTS
        assert weight_store.versions() == []
        assert weight_store.current_version() == "default"

    def test_fallback_and_old_records_do_not_count(self):
        records = [_validated(i) for i in range(15)]
        records += [_validated(100 + i, is_fallback=True) for i in range(10)]
        records += [_validated(200 + i, created_at=AS_OF - timedelta(days=60)) for i in range(10)]

        result = WeightTuner(_store_with(records)).tune_weights(as_of=AS_OF)

        assert result.status == "insufficient_data"
        assert result.predictions_analyzed == 15

    def test_proposal_saved_but_not_adopted(self, tmp_path):
        predictions = _store_with(_form_right_injuries_wrong())
        weight_store = WeightStore(tmp_path / "weights")
        run_log = RunLog(tmp_path / "run_log.jsonl")

        result = WeightTuner(predictions, weight_store=weight_store, run_log=run_log).tune_weights(as_of=AS_OF)

        assert result.status == "tuned"
        assert result.success is True
        _assert_valid(result.proposed_weights)
        assert result.proposed_weights["team_form"] > DEFAULT_WEIGHTS["team_form"]
        assert result.proposed_weights["injuries"] < DEFAULT_WEIGHTS["injuries"]

        assert weight_store.versions() == [result.proposed_version]
        assert weight_store.current_version() == "default"
        saved = weight_store.get(result.proposed_version)
        assert saved.source == "tuner"
        assert saved.parent_version == "default"
        assert run_log.entries(WEIGHT_TUNING)[0].metadata["proposed_version"] == result.proposed_version

        by_factor = {r["factor"]: r for r in result.recommendations}
        assert set(by_factor) == {"team_form", "injuries"}
        assert by_factor["team_form"]["status"] == "excellent"
        assert by_factor["team_form"]["action"] == "Increase weight significantly"
        assert by_factor["injuries"]["status"] == "needs_improvement"
        assert by_factor["injuries"]["action"] == "Decrease weight significantly"

    def test_without_weight_store(self):
        predictions = _store_with([_validated(i) for i in range(25)])
        result = WeightTuner(predictions).tune_weights(as_of=AS_OF)
        assert result.status == "tuned"
        assert result.proposed_version == "proposed"

    def test_store_failure_is_reported(self, tmp_path):
        run_log = RunLog(tmp_path / "run_log.jsonl")
        tuner = WeightTuner(
            _store_with([_validated(i) for i in range(25)]),
            weight_store=BrokenWeightStore(tmp_path / "weights"),
            run_log=run_log,
        )

        result = tuner.tune_weights(as_of=AS_OF)

        assert result.status == "error"
        assert result.success is False
        assert "weights volume not mounted" in result.error
        assert len(run_log.entries(WEIGHT_TUNING_ERROR)) == 1


class TestRecommendations:
    def test_good_tier(self):
        recs = build_recommendations(
            {"team_form": {"total": 20, "correct": 12, "accuracy_pct": 60.0}},
            DEFAULT_WEIGHTS,
            dict(DEFAULT_WEIGHTS),
        )
        assert recs[0].status == "good"
        assert recs[0].action == "Maintain current weight"
        assert recs[0].weight_change_pct == 0.0

    def test_unmeasured_factors_skipped(self):
        recs = build_recommendations(
            {"weather": {"total": 0, "correct": 0, "accuracy_pct": 0.0}},
            DEFAULT_WEIGHTS,
            dict(DEFAULT_WEIGHTS),
        )
        assert recs == []
