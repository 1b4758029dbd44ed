# events/tests/test_engine.py
"""
AI Engine Unit Tests
====================

Test suite for the deterministic "Brain" of the recommender.

This module tests:
1. Urgency computation (deadline-based, both overdue policies)
2. Scoring components (quick wins, duration fit, difficulty fit, date modifiers)
3. Recency memory (repetition penalty, capacity)
4. Local ranker (membership, tie-break, variety)
5. Rule pre-filter (top-K shortlist)
6. Scoring weight overrides

Test Philosophy:
----------------
- Test MATH, not just models
- Fixed reference time, no wall-clock dependence
- Tests do not require external services
"""

from __future__ import annotations

import datetime
import uuid

from django.test import SimpleTestCase

from events.ai_engine.context import (
    Candidate,
    DifficultyLevel,
    EmotionBucket,
    StaticPhysiologyProvider,
    UserState,
    classify_difficulty,
    classify_emotion,
)
from events.ai_engine.exceptions import EmptyCandidateSet
from events.ai_engine.ranker import LocalRanker
from events.ai_engine.recency import RecencyMemory
from events.ai_engine.rules import RulePreFilter
from events.ai_engine.scoring import (
    date_modifiers,
    difficulty_fit_score,
    duration_fit_score,
    quick_wins_score,
    score_candidate,
    target_duration_hours,
)
from events.ai_engine.urgency import compute_urgency, is_due_today
from events.ai_engine.weights import DurationFitMode, OverduePolicy, ScoringWeights


# Fixed reference: January 15, 2024 at noon UTC
FIXED_NOW = datetime.datetime(2024, 1, 15, 12, 0, 0, tzinfo=datetime.timezone.utc)


def make_candidate(
    name: str = "Event",
    days: float | None = None,
    hours: float | None = None,
    difficulty: str | None = None,
) -> Candidate:
    deadline = FIXED_NOW + datetime.timedelta(days=days) if days is not None else None
    return Candidate(
        id=uuid.uuid4(),
        name=name,
        deadline=deadline,
        estimated_hours=hours,
        difficulty=difficulty,
    )


def make_state(emotion: str = "calm", heart_rate=None, hrv=None) -> UserState:
    return UserState(emotion=emotion, heart_rate_bpm=heart_rate, hrv_sdnn_ms=hrv, now=FIXED_NOW)


# ===========================================================================
# CLASSIFICATION TESTS
# ===========================================================================


class TestClassification(SimpleTestCase):

    def test_emotion_keywords_map_to_buckets(self) -> None:
        self.assertEqual(classify_emotion("Anxious"), EmotionBucket.STRESSED)
        self.assertEqual(classify_emotion("a bit overwhelmed today"), EmotionBucket.STRESSED)
        self.assertEqual(classify_emotion("Focused"), EmotionBucket.ENERGIZED)
        self.assertEqual(classify_emotion("calm"), EmotionBucket.NEUTRAL)
        self.assertEqual(classify_emotion(""), EmotionBucket.NEUTRAL)

    def test_difficulty_exact_match_then_heuristics(self) -> None:
        self.assertEqual(classify_difficulty("HARD"), DifficultyLevel.HARD)
        self.assertEqual(classify_difficulty(" easy "), DifficultyLevel.EASY)
        self.assertEqual(classify_difficulty("Low effort"), DifficultyLevel.EASY)
        self.assertEqual(classify_difficulty("very high"), DifficultyLevel.HARD)
        self.assertEqual(classify_difficulty("whatever"), DifficultyLevel.MEDIUM)
        self.assertEqual(classify_difficulty(None), DifficultyLevel.MEDIUM)

    def test_capture_ignores_failing_provider(self) -> None:
        """A provider that raises must mean 'no physiology adjustment'."""

        class BrokenProvider:
            def latest_heart_rate(self):
                raise RuntimeError("sensor offline")

            def latest_hrv(self):
                return "n/a"

        state = UserState.capture("tired", BrokenProvider(), now=FIXED_NOW)

        self.assertIsNone(state.heart_rate_bpm)
        self.assertIsNone(state.hrv_sdnn_ms)
        self.assertEqual(state.bucket, EmotionBucket.STRESSED)

    def test_capture_reads_static_provider(self) -> None:
        state = UserState.capture("calm", StaticPhysiologyProvider(72, 45), now=FIXED_NOW)

        self.assertEqual(state.heart_rate_bpm, 72.0)
        self.assertEqual(state.hrv_sdnn_ms, 45.0)
        self.assertEqual(state.now, FIXED_NOW)


# ===========================================================================
# URGENCY SCORE TESTS
# ===========================================================================


class TestComputeUrgency(SimpleTestCase):

    def test_urgency_non_increasing_with_distance(self) -> None:
        """Urgency must never grow as the deadline moves further out."""
        previous = None
        for days in (0.25, 0.5, 1, 2, 3, 5, 7, 10, 13, 14, 20, 60):
            value = compute_urgency(FIXED_NOW + datetime.timedelta(days=days), now=FIXED_NOW)
            self.assertGreaterEqual(value, 0.0)
            self.assertLessEqual(value, 1.0)
            if previous is not None:
                self.assertLessEqual(value, previous, f"urgency increased at {days} days")
            previous = value

    def test_urgency_curve_values(self) -> None:
        seven_days = compute_urgency(FIXED_NOW + datetime.timedelta(days=7), now=FIXED_NOW)
        self.assertAlmostEqual(seven_days, 0.5 ** 0.7, places=6)

        at_horizon = compute_urgency(FIXED_NOW + datetime.timedelta(days=14), now=FIXED_NOW)
        self.assertEqual(at_horizon, 0.0)

    def test_missing_deadline_is_neutral(self) -> None:
        self.assertEqual(compute_urgency(None, now=FIXED_NOW), 0.2)

    def test_overdue_policies(self) -> None:
        yesterday = FIXED_NOW - datetime.timedelta(days=1)

        self.assertEqual(
            compute_urgency(yesterday, now=FIXED_NOW, overdue_policy=OverduePolicy.CLAMP_TO_ZERO),
            0.0,
        )
        self.assertEqual(
            compute_urgency(
                yesterday,
                now=FIXED_NOW,
                overdue_policy=OverduePolicy.CLAMP_TO_ONE_WITH_SEPARATE_PENALTY,
            ),
            1.0,
        )

    def test_naive_deadline_is_treated_in_now_timezone(self) -> None:
        naive = datetime.datetime(2024, 1, 15, 18, 0, 0)
        self.assertTrue(is_due_today(naive, FIXED_NOW))
        self.assertGreater(compute_urgency(naive, now=FIXED_NOW), 0.9)


# ===========================================================================
# SCORING COMPONENT TESTS
# ===========================================================================


class TestScoringComponents(SimpleTestCase):

    def test_quick_wins_steps(self) -> None:
        self.assertEqual(quick_wins_score(0.5), 1.0)
        self.assertEqual(quick_wins_score(0.6), 0.6)
        self.assertEqual(quick_wins_score(1.0), 0.6)
        self.assertEqual(quick_wins_score(2.0), 0.2)
        self.assertEqual(quick_wins_score(None), 0.3)

    def test_difficulty_fit_by_rank_distance(self) -> None:
        stressed = make_state("stressed")
        self.assertEqual(difficulty_fit_score("Easy", stressed), 1.0)
        self.assertEqual(difficulty_fit_score("Medium", stressed), 0.6)
        self.assertEqual(difficulty_fit_score("Hard", stressed), 0.25)
        # Unclassifiable difficulty is medium, the neutral preference
        self.assertEqual(difficulty_fit_score("??", make_state("calm")), 1.0)

    def test_physiology_tilts_difficulty_towards_easy(self) -> None:
        racing = make_state("stressed", heart_rate=95)
        elevated = make_state("stressed", heart_rate=82)

        self.assertAlmostEqual(difficulty_fit_score("Easy", racing, with_physiology=True), 0.8)
        self.assertAlmostEqual(difficulty_fit_score("Easy", elevated, with_physiology=True), 0.9)
        self.assertEqual(difficulty_fit_score("Easy", racing, with_physiology=False), 1.0)

    def test_continuous_duration_fit(self) -> None:
        neutral = make_state("calm")
        self.assertEqual(target_duration_hours(neutral), 1.5)
        self.assertEqual(
            duration_fit_score(1.5, neutral, DurationFitMode.CONTINUOUS_TARGET_DISTANCE), 1.0
        )
        self.assertAlmostEqual(
            duration_fit_score(2.5, neutral, DurationFitMode.CONTINUOUS_TARGET_DISTANCE), 0.5
        )
        self.assertEqual(
            duration_fit_score(None, neutral, DurationFitMode.CONTINUOUS_TARGET_DISTANCE), 0.3
        )

    def test_target_duration_has_floor(self) -> None:
        stressed_racing = make_state("anxious", heart_rate=95, hrv=20)
        self.assertEqual(target_duration_hours(stressed_racing), 0.25)

    def test_bucketed_duration_fit_uses_quick_wins(self) -> None:
        state = make_state("focused")
        self.assertEqual(duration_fit_score(0.4, state, DurationFitMode.BUCKETED), 1.0)
        self.assertEqual(duration_fit_score(3.0, state, DurationFitMode.BUCKETED), 0.2)

    def test_date_modifiers_stack_in_algorithm_preset(self) -> None:
        earlier_today = make_candidate(days=-0.125)  # 09:00 the same day
        boost, adjustment = date_modifiers(earlier_today, make_state(), ScoringWeights.algorithm())

        self.assertEqual(boost, 0.20)
        self.assertEqual(adjustment, -0.30)

    def test_same_day_boost_wins_in_rule_preset(self) -> None:
        earlier_today = make_candidate(days=-0.125)
        boost, adjustment = date_modifiers(earlier_today, make_state(), ScoringWeights.rule_based())

        self.assertEqual(boost, 0.20)
        self.assertEqual(adjustment, 0.0)

    def test_no_date_modifiers_for_future_or_missing_deadline(self) -> None:
        weights = ScoringWeights.algorithm()
        self.assertEqual(date_modifiers(make_candidate(days=2), make_state(), weights), (0.0, 0.0))
        self.assertEqual(date_modifiers(make_candidate(), make_state(), weights), (0.0, 0.0))

    def test_total_with_all_attributes_missing(self) -> None:
        """Missing attributes fall back to neutral values, never an error."""
        breakdown = score_candidate(make_candidate(difficulty="medium"), make_state("calm"))

        self.assertEqual(breakdown.urgency, 0.2)
        self.assertEqual(breakdown.duration_fit, 0.3)
        self.assertEqual(breakdown.difficulty_fit, 1.0)
        self.assertEqual(breakdown.quick_wins, 0.3)
        self.assertEqual(breakdown.variety, 0.0)
        self.assertAlmostEqual(breakdown.total, 0.38)

    def test_scoring_is_idempotent(self) -> None:
        candidate = make_candidate(days=3, hours=1.0, difficulty="Hard")
        state = make_state("motivated", heart_rate=65, hrv=70)
        memory = RecencyMemory()
        memory.mark_picked(candidate.id)

        first = score_candidate(candidate, state, memory=memory)
        second = score_candidate(candidate, state, memory=memory)

        self.assertEqual(first, second)


# ===========================================================================
# RECENCY MEMORY TESTS
# ===========================================================================


class TestRecencyMemory(SimpleTestCase):

    def test_repetition_penalty_by_distance(self) -> None:
        memory = RecencyMemory()
        a, b, c, d = (uuid.uuid4() for _ in range(4))

        memory.mark_picked(a)
        self.assertEqual(memory.repetition_penalty(a), -0.10)

        memory.mark_picked(b)
        memory.mark_picked(c)
        self.assertEqual(memory.repetition_penalty(a), -0.03)
        self.assertEqual(memory.repetition_penalty(b), -0.06)

        memory.mark_picked(d)
        self.assertEqual(memory.repetition_penalty(a), 0.0)

    def test_never_chosen_has_no_penalty(self) -> None:
        self.assertEqual(RecencyMemory().repetition_penalty(uuid.uuid4()), 0.0)

    def test_capacity_drops_oldest(self) -> None:
        memory = RecencyMemory(capacity=2)
        ids = [uuid.uuid4() for _ in range(3)]
        for event_id in ids:
            memory.mark_picked(event_id)

        self.assertEqual(memory.snapshot(), ids[1:])
        self.assertEqual(len(memory), 2)

    def test_invalid_capacity(self) -> None:
        with self.assertRaises(ValueError):
            RecencyMemory(capacity=0)


# ===========================================================================
# LOCAL RANKER TESTS
# ===========================================================================


class TestLocalRanker(SimpleTestCase):

    def test_winner_is_member_of_input(self) -> None:
        candidates = [
            make_candidate("Essay", days=1, hours=2.0, difficulty="Hard"),
            make_candidate("Email", days=5, hours=0.25, difficulty="Easy"),
            make_candidate("Reading", hours=1.0),
        ]
        ranking = LocalRanker().rank(candidates, make_state("anxious"))

        self.assertIn(ranking.winner, candidates)
        self.assertEqual(len(ranking.ranked), 3)
        self.assertEqual(ranking.ranked[0][0], ranking.winner)

    def test_empty_input_raises(self) -> None:
        with self.assertRaises(EmptyCandidateSet):
            LocalRanker().rank([], make_state())

    def test_tie_breaks_on_earliest_deadline(self) -> None:
        # Both beyond the urgency horizon, so their totals are equal
        later = make_candidate("Later", days=30, hours=1.0, difficulty="medium")
        sooner = make_candidate("Sooner", days=20, hours=1.0, difficulty="medium")

        ranking = LocalRanker().rank([later, sooner], make_state())

        self.assertEqual(ranking.winner, sooner)

    def test_tie_breaks_on_input_order(self) -> None:
        first = make_candidate("First", hours=1.0)
        second = make_candidate("Second", hours=1.0)

        ranking = LocalRanker().rank([first, second], make_state())

        self.assertEqual(ranking.winner, first)

    def test_naive_deadline_tie_break_uses_now_timezone(self) -> None:
        """A naive deadline is read in now's timezone, as the urgency score reads it."""
        plus_five = datetime.timezone(datetime.timedelta(hours=5))
        now = FIXED_NOW.astimezone(plus_five)
        # 10:00 at +05:00 is 05:00 UTC, earlier than 07:00 UTC
        naive = Candidate(
            id=uuid.uuid4(), name="Naive", estimated_hours=1.0, difficulty="medium",
            deadline=datetime.datetime(2024, 2, 10, 10, 0),
        )
        aware = Candidate(
            id=uuid.uuid4(), name="Aware", estimated_hours=1.0, difficulty="medium",
            deadline=datetime.datetime(2024, 2, 10, 7, 0, tzinfo=datetime.timezone.utc),
        )
        state = UserState(emotion="calm", now=now)

        ranking = LocalRanker().rank([aware, naive], state)

        self.assertEqual(ranking.ranked[0][1].total, ranking.ranked[1][1].total)
        self.assertEqual(ranking.winner, naive)

    def test_winner_recorded_and_penalized_next_time(self) -> None:
        memory = RecencyMemory()
        ranker = LocalRanker(memory=memory)
        first = make_candidate("First", hours=1.0)
        second = make_candidate("Second", hours=1.0)

        self.assertEqual(ranker.rank([first, second], make_state()).winner, first)
        self.assertEqual(memory.snapshot(), [first.id])

        # The repeated pick now carries the variety penalty
        self.assertEqual(ranker.rank([first, second], make_state()).winner, second)

    def test_stressed_user_prefers_quick_easy_event(self) -> None:
        quick = make_candidate("Reply to email", days=4, hours=0.25, difficulty="Easy")
        long_hard = make_candidate("Write thesis chapter", days=4, hours=4.0, difficulty="Hard")

        ranking = LocalRanker().rank([long_hard, quick], make_state("stressed", heart_rate=92))

        self.assertEqual(ranking.winner, quick)


# ===========================================================================
# RULE PRE-FILTER TESTS
# ===========================================================================


class TestRulePreFilter(SimpleTestCase):

    def test_shortlist_is_bounded_and_best_first(self) -> None:
        overdue = make_candidate("Overdue", days=-2, hours=1.0)
        others = [make_candidate(f"Later {i}", days=10 + i, hours=1.0) for i in range(7)]

        shortlist = RulePreFilter(top_k=5).shortlist(others + [overdue], make_state())

        self.assertEqual(len(shortlist), 5)
        self.assertEqual(shortlist[0], overdue)

    def test_shortlist_smaller_input(self) -> None:
        candidates = [make_candidate("A"), make_candidate("B")]
        self.assertEqual(len(RulePreFilter(top_k=5).shortlist(candidates, make_state())), 2)

    def test_empty_input(self) -> None:
        self.assertEqual(RulePreFilter().shortlist([], make_state()), [])

    def test_top_k_clamped_to_one(self) -> None:
        self.assertEqual(RulePreFilter(top_k=0).top_k, 1)

    def test_ties_keep_input_order(self) -> None:
        candidates = [make_candidate(f"Same {i}", hours=1.0) for i in range(4)]
        shortlist = RulePreFilter(top_k=2).shortlist(candidates, make_state())
        self.assertEqual(shortlist, candidates[:2])


# ===========================================================================
# SCORING WEIGHTS TESTS
# ===========================================================================


class TestScoringWeights(SimpleTestCase):

    def test_overrides_replace_fields(self) -> None:
        weights = ScoringWeights.algorithm().with_overrides(
            {"urgency": 0.5, "overdue_policy": "clamp_to_one_with_separate_penalty"}
        )

        self.assertEqual(weights.urgency, 0.5)
        self.assertEqual(weights.overdue_policy, OverduePolicy.CLAMP_TO_ONE_WITH_SEPARATE_PENALTY)
        self.assertEqual(weights.duration_fit, 0.20)

    def test_empty_overrides_return_same_weights(self) -> None:
        weights = ScoringWeights.algorithm()
        self.assertIs(weights.with_overrides({}), weights)
        self.assertIs(weights.with_overrides(None), weights)

    def test_invalid_overrides(self) -> None:
        weights = ScoringWeights.algorithm()
        with self.assertRaises(ValueError):
            weights.with_overrides({"importance": 0.3})
        with self.assertRaises(ValueError):
            weights.with_overrides({"urgency": "lots"})
        with self.assertRaises(ValueError):
            weights.with_overrides({"horizon_days": 0})

    def test_rule_preset_policies(self) -> None:
        rules = ScoringWeights.rule_based()

        self.assertEqual(rules.duration_fit_mode, DurationFitMode.BUCKETED)
        self.assertFalse(rules.physiology_tilt)
        self.assertEqual(rules.to_dict()["overdue_policy"], "clamp_to_one_with_separate_penalty")
