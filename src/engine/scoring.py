"""
Farkle Engine - Score Evaluation

Pure functions that turn a multiset of up to six die faces into the scoring
combinations it contains and the best disjoint selection of them.

Default scoring rules:
    - Single 1: 100 points
    - Single 5: 50 points
    - Three 1s: 1,000 points
    - Three of X (2-6): X × 100 points
    - Four+ of a kind: Previous tier × 2
    - 1-2-3-4-5-6 (Straight): 1,500 points
    - Three pairs: 1,500 points

The search works on face-count patterns (how many of each face were rolled),
so a roll of six dice has only a few hundred distinct inputs. Results are
memoised per (pattern, rules) pair.
"""

from collections import Counter
from dataclasses import dataclass, fields
from functools import lru_cache
from typing import Sequence

from src.engine.base import DIE_FACES, DiceSet, ScoreCombination, ScoringRule
from src.engine.validators import validate_dice_values, validate_points


Counts = tuple[int, ...]

_KIND_RULES = {
    3: ScoringRule.THREE_OF_A_KIND,
    4: ScoringRule.FOUR_OF_A_KIND,
    5: ScoringRule.FIVE_OF_A_KIND,
    6: ScoringRule.SIX_OF_A_KIND,
}

# Tie-break priority: multi-of-a-kind > three pairs / straights > singles
_PRIORITY = {
    ScoringRule.THREE_OF_A_KIND: 2,
    ScoringRule.FOUR_OF_A_KIND: 2,
    ScoringRule.FIVE_OF_A_KIND: 2,
    ScoringRule.SIX_OF_A_KIND: 2,
    ScoringRule.FULL_STRAIGHT: 1,
    ScoringRule.THREE_PAIRS: 1,
    ScoringRule.LOW_STRAIGHT: 1,
    ScoringRule.HIGH_STRAIGHT: 1,
    ScoringRule.SINGLE_ONE: 0,
    ScoringRule.SINGLE_FIVE: 0,
}


@dataclass(frozen=True)
class ScoringRules:
    """
    Point table for a game.

    Attributes:
        single_one: Points for an unscored 1
        single_five: Points for an unscored 5
        three_ones: Points for three 1s
        triple_multiplier: Three of X (2-6) scores X times this
        extra_die_multiplier: Each die beyond three of a kind multiplies by this
        full_straight: Points for 1-2-3-4-5-6
        three_pairs: Points for three distinct pairs
        low_straight: Points for 1-2-3-4-5, or None when not played
        high_straight: Points for 2-3-4-5-6, or None when not played
    """
    single_one: int = 100
    single_five: int = 50
    three_ones: int = 1000
    triple_multiplier: int = 100
    extra_die_multiplier: int = 2
    full_straight: int = 1500
    three_pairs: int = 1500
    low_straight: int | None = None
    high_straight: int | None = None

    def __post_init__(self) -> None:
        """Validate every configured value."""
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None and f.name in ("low_straight", "high_straight"):
                continue
            validate_points(value, f.name, allow_zero=f.name != "extra_die_multiplier")

    def of_a_kind(self, face: int, count: int) -> int:
        """Points for `count` (3-6) dice showing `face`."""
        base = self.three_ones if face == 1 else face * self.triple_multiplier
        return base * self.extra_die_multiplier ** (count - 3)


DEFAULT_RULES = ScoringRules()


@dataclass(frozen=True)
class _Pattern:
    rule: ScoringRule
    counts: Counts
    points: int

    @property
    def size(self) -> int:
        return sum(self.counts)

    @property
    def faces(self) -> tuple[int, ...]:
        return tuple(
            face for face in range(1, DIE_FACES + 1)
            for _ in range(self.counts[face - 1])
        )


@dataclass(frozen=True)
class Evaluation:
    """
    Complete evaluation of a set of free dice.

    Attributes:
        faces: Faces of the evaluated dice
        indices: Position of each evaluated die on the table
        combinations: Every scoring combination present
        best: Highest-value disjoint selection of combinations
    """
    faces: tuple[int, ...]
    indices: tuple[int, ...]
    combinations: tuple[ScoreCombination, ...]
    best: tuple[ScoreCombination, ...]

    @property
    def points(self) -> int:
        """Maximum points obtainable from these dice."""
        return sum(c.points for c in self.best)

    @property
    def is_farkle(self) -> bool:
        """True when nothing in the dice scores."""
        return not self.combinations

    @property
    def scoring_indices(self) -> frozenset[int]:
        """Positions that take part in at least one combination."""
        return frozenset(i for c in self.combinations for i in c.indices)

    @property
    def best_indices(self) -> frozenset[int]:
        """Positions used by the best selection."""
        return frozenset(i for c in self.best for i in c.indices)

    def __str__(self) -> str:
        if self.is_farkle:
            return "FARKLE! No scoring dice."
        lines = [f"Best: {self.points} points"]
        for item in self.best:
            lines.append(f"  - {item}")
        return "\n".join(lines)


def _to_counts(faces: Sequence[int]) -> Counts:
    counter = Counter(faces)
    return tuple(counter[face] for face in range(1, DIE_FACES + 1))


def _single_face(face: int, count: int) -> Counts:
    return tuple(count if f == face else 0 for f in range(1, DIE_FACES + 1))


def _run(low: int, high: int) -> Counts:
    return tuple(1 if low <= f <= high else 0 for f in range(1, DIE_FACES + 1))


def _fits(pattern: Counts, counts: Counts) -> bool:
    return all(p <= c for p, c in zip(pattern, counts))


def _subtract(counts: Counts, pattern: Counts) -> Counts:
    return tuple(c - p for c, p in zip(counts, pattern))


def _candidate_patterns(counts: Counts, rules: ScoringRules) -> list[_Pattern]:
    """Every scoring pattern that fits inside `counts`."""
    patterns: list[_Pattern] = []

    for face in range(1, DIE_FACES + 1):
        for n in range(counts[face - 1], 2, -1):
            patterns.append(_Pattern(_KIND_RULES[n], _single_face(face, n), rules.of_a_kind(face, n)))

    straights = [(ScoringRule.FULL_STRAIGHT, 1, 6, rules.full_straight)]
    if rules.low_straight is not None:
        straights.append((ScoringRule.LOW_STRAIGHT, 1, 5, rules.low_straight))
    if rules.high_straight is not None:
        straights.append((ScoringRule.HIGH_STRAIGHT, 2, 6, rules.high_straight))
    for rule, low, high, points in straights:
        run = _run(low, high)
        if _fits(run, counts):
            patterns.append(_Pattern(rule, run, points))

    pairs = [face for face in range(1, DIE_FACES + 1) if counts[face - 1] >= 2]
    if len(pairs) == 3:
        pair_counts = tuple(2 if f in pairs else 0 for f in range(1, DIE_FACES + 1))
        patterns.append(_Pattern(ScoringRule.THREE_PAIRS, pair_counts, rules.three_pairs))

    if counts[0] >= 1:
        patterns.append(_Pattern(ScoringRule.SINGLE_ONE, _single_face(1, 1), rules.single_one))
    if counts[4] >= 1:
        patterns.append(_Pattern(ScoringRule.SINGLE_FIVE, _single_face(5, 1), rules.single_five))

    return patterns


def _rank(solution: tuple[int, int, tuple[_Pattern, ...]]) -> tuple:
    points, used, patterns = solution
    return points, used, sorted((_PRIORITY[p.rule] for p in patterns), reverse=True)


@lru_cache(maxsize=None)
def _solve(
    counts: Counts,
    rules: ScoringRules,
    exact: bool
) -> tuple[int, int, tuple[_Pattern, ...]] | None:
    """
    Best (points, dice used, patterns) for a face-count pattern.

    With `exact` every die must be consumed; None means that is impossible.
    """
    if not any(counts):
        return 0, 0, ()

    best = None if exact else (0, 0, ())
    for pattern in _candidate_patterns(counts, rules):
        rest = _solve(_subtract(counts, pattern.counts), rules, exact)
        if rest is None:
            continue
        candidate = (pattern.points + rest[0], pattern.size + rest[1], (pattern,) + rest[2])
        if best is None or _rank(candidate) > _rank(best):
            best = candidate
    return best


def _assign(
    patterns: Sequence[_Pattern],
    faces: Sequence[int],
    positions: Sequence[int]
) -> tuple[ScoreCombination, ...]:
    """Map disjoint patterns onto concrete dice positions."""
    used: set[int] = set()
    combinations: list[ScoreCombination] = []
    ordered = sorted(patterns, key=lambda p: (-_PRIORITY[p.rule], p.faces))
    for pattern in ordered:
        chosen: list[int] = []
        for face in pattern.faces:
            for i, value in enumerate(faces):
                if value == face and i not in used:
                    used.add(i)
                    chosen.append(positions[i])
                    break
        combinations.append(ScoreCombination(
            rule=pattern.rule,
            faces=pattern.faces,
            indices=tuple(chosen),
            points=pattern.points,
        ))
    return tuple(combinations)


def _normalise(
    dice: Sequence[int] | DiceSet,
    positions: Sequence[int] | None = None
) -> tuple[tuple[int, ...], tuple[int, ...]]:
    if isinstance(dice, DiceSet):
        return dice.free_faces, dice.free_indices
    faces = validate_dice_values(dice)
    if positions is None:
        return faces, tuple(range(len(faces)))
    positions = tuple(positions)
    if len(positions) != len(faces):
        raise ValueError(f"Expected {len(faces)} positions, got {len(positions)}.")
    return faces, positions


def find_combinations(
    dice: Sequence[int] | DiceSet,
    rules: ScoringRules = DEFAULT_RULES,
    positions: Sequence[int] | None = None
) -> tuple[ScoreCombination, ...]:
    """
    List every scoring combination present in the dice.

    Singles are listed once per die. N-of-a-kind is listed for every N from
    three up to the number of matching dice. Combinations may overlap; use
    `best_selection` for a disjoint choice.

    Args:
        dice: Face values, or a DiceSet whose free dice are evaluated
        rules: Scoring table
        positions: Table positions of the faces (defaults to 0..n-1)

    Returns:
        Tuple of combinations, empty when the dice farkle
    """
    faces, positions = _normalise(dice, positions)
    combinations: list[ScoreCombination] = []

    for pattern in _candidate_patterns(_to_counts(faces), rules):
        if pattern.rule in (ScoringRule.SINGLE_ONE, ScoringRule.SINGLE_FIVE):
            face = pattern.faces[0]
            for i, value in enumerate(faces):
                if value == face:
                    combinations.append(ScoreCombination(
                        rule=pattern.rule,
                        faces=(face,),
                        indices=(positions[i],),
                        points=pattern.points,
                    ))
        else:
            combinations.extend(_assign((pattern,), faces, positions))

    return tuple(combinations)


def best_selection(
    dice: Sequence[int] | DiceSet,
    rules: ScoringRules = DEFAULT_RULES,
    positions: Sequence[int] | None = None
) -> tuple[ScoreCombination, ...]:
    """
    Highest-value selection of disjoint combinations from the dice.

    Returns:
        Tuple of combinations, empty when nothing scores
    """
    faces, positions = _normalise(dice, positions)
    _, _, patterns = _solve(_to_counts(faces), rules, False)
    return _assign(patterns, faces, positions)


def partition_selection(
    dice: Sequence[int] | DiceSet,
    rules: ScoringRules = DEFAULT_RULES,
    positions: Sequence[int] | None = None
) -> tuple[ScoreCombination, ...] | None:
    """
    Score a selection in which every die must belong to a combination.

    Returns:
        The highest-value partition, or None when some die cannot score
        (an empty selection also returns None)
    """
    faces, positions = _normalise(dice, positions)
    if not faces:
        return None
    solution = _solve(_to_counts(faces), rules, True)
    if solution is None:
        return None
    return _assign(solution[2], faces, positions)


def score_selection(
    dice: Sequence[int] | DiceSet,
    rules: ScoringRules = DEFAULT_RULES
) -> int | None:
    """Points for a fully-scoring selection, or None if it is not one."""
    partition = partition_selection(dice, rules)
    if partition is None:
        return None
    return sum(c.points for c in partition)


def evaluate(
    dice: Sequence[int] | DiceSet,
    rules: ScoringRules = DEFAULT_RULES,
    positions: Sequence[int] | None = None
) -> Evaluation:
    """
    Evaluate a roll: all combinations plus the best disjoint selection.

    Args:
        dice: Face values, or a DiceSet whose free dice are evaluated
        rules: Scoring table
        positions: Table positions of the faces (defaults to 0..n-1)

    Returns:
        Evaluation; `is_farkle` is True when nothing scores
    """
    faces, positions = _normalise(dice, positions)
    return Evaluation(
        faces=faces,
        indices=positions,
        combinations=find_combinations(faces, rules, positions),
        best=best_selection(faces, rules, positions),
    )


@dataclass(frozen=True)
class ScoreEvaluator:
    """
    Score evaluation bound to one scoring table.

    Holds no state beyond the immutable rules, so one instance can be shared
    freely.
    """
    rules: ScoringRules = DEFAULT_RULES

    def evaluate(self, dice: Sequence[int] | DiceSet) -> Evaluation:
        return evaluate(dice, self.rules)

    def find_combinations(self, dice: Sequence[int] | DiceSet) -> tuple[ScoreCombination, ...]:
        return find_combinations(dice, self.rules)

    def best_selection(self, dice: Sequence[int] | DiceSet) -> tuple[ScoreCombination, ...]:
        return best_selection(dice, self.rules)

    def partition_selection(
        self,
        dice: Sequence[int],
        positions: Sequence[int] | None = None
    ) -> tuple[ScoreCombination, ...] | None:
        return partition_selection(dice, self.rules, positions)

    def score_selection(self, dice: Sequence[int] | DiceSet) -> int | None:
        return score_selection(dice, self.rules)

    def max_score(self, dice: Sequence[int] | DiceSet) -> int:
        """Maximum points obtainable; zero means a farkle."""
        return sum(c.points for c in self.best_selection(dice))

    def is_farkle(self, dice: Sequence[int] | DiceSet) -> bool:
        return not self.find_combinations(dice)
