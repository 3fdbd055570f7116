"""
Farkle Engine - Input Validation Utilities

Provides validation functions for game engine inputs. Validators return
normalised data or raise a descriptive engine error.
"""

from typing import Iterable, Sequence

from src.engine.base import DIE_FACES, MAX_DICE
from src.engine.errors import ConfigurationError, InvalidSelection


def validate_dice_values(
    values: Sequence[int],
    min_count: int = 0,
    max_count: int = MAX_DICE
) -> tuple[int, ...]:
    """
    Validate and normalize dice values.

    Args:
        values: Sequence of dice values to validate
        min_count: Minimum number of dice required
        max_count: Maximum number of dice allowed

    Returns:
        Validated values as a tuple

    Raises:
        ValueError: If validation fails
    """
    values_tuple = tuple(values)
    count = len(values_tuple)

    if count < min_count:
        raise ValueError(f"At least {min_count} dice required, got {count}.")

    if count > max_count:
        raise ValueError(f"At most {max_count} dice allowed, got {count}.")

    for i, value in enumerate(values_tuple):
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"Die value at index {i} must be an integer, got {type(value).__name__}.")
        if not (1 <= value <= DIE_FACES):
            raise ValueError(
                f"Die value at index {i} is {value}, must be between 1 and {DIE_FACES}."
            )

    return values_tuple


def validate_selection_indices(
    indices: Iterable[int],
    dice_count: int
) -> tuple[int, ...]:
    """
    Validate indices of dice chosen to keep.

    Args:
        indices: Collection of dice positions
        dice_count: Total number of dice on the table

    Returns:
        Validated indices, sorted

    Raises:
        InvalidSelection: If the selection is empty or any index is out of range
    """
    indices_set = frozenset(indices)

    if not indices_set:
        raise InvalidSelection("Select at least one die to keep.")

    for idx in indices_set:
        if not isinstance(idx, int) or isinstance(idx, bool):
            raise InvalidSelection(f"Die index must be an integer, got {type(idx).__name__}.")
        if not (0 <= idx < dice_count):
            raise InvalidSelection(
                f"Die index {idx} is out of range. Must be between 0 and {dice_count - 1}."
            )

    return tuple(sorted(indices_set))


def validate_points(value: int, name: str, allow_zero: bool = True) -> int:
    """
    Validate a configured point value.

    Raises:
        ConfigurationError: If the value is not a non-negative integer
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got {type(value).__name__}.")

    if value < 0 or (value == 0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise ConfigurationError(f"{name} must be {qualifier}, got {value}.")

    return value


def validate_dice_count(count: int) -> int:
    """
    Validate the number of dice in play.

    Raises:
        ConfigurationError: If count is not 1-6
    """
    if not isinstance(count, int) or isinstance(count, bool):
        raise ConfigurationError(f"Dice count must be an integer, got {type(count).__name__}.")

    if not (1 <= count <= MAX_DICE):
        raise ConfigurationError(f"Dice count must be 1-{MAX_DICE}, got {count}.")

    return count


def validate_player_ids(ids: Sequence[str]) -> tuple[str, ...]:
    """
    Validate the seats of a match.

    Raises:
        ConfigurationError: If there are no players or ids repeat
    """
    ids_tuple = tuple(ids)

    if not ids_tuple:
        raise ConfigurationError("A match needs at least one player.")

    if len(set(ids_tuple)) != len(ids_tuple):
        raise ConfigurationError(f"Player ids must be unique, got {list(ids_tuple)}.")

    return ids_tuple
