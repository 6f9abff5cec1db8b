"""
Profile evolution.

Folds freshly extracted preferences into an existing profile without losing
anything already known:

- preferred_heroes: additive, exact-match de-dup
- preferred_roles / learning_goals: additive, case-insensitive de-dup
- skill_level: replaced when different
- playstyle: set if absent, otherwise appended as "{old}, {new}" unless already contained

The engine only computes the diff. Persisting it is the caller's job.
"""

from datetime import datetime, timezone

from app.models.profile import EvolutionResult, ExtractedPreferences, MemoryUpdate, UserProfile


def _append_new(current: list[str], extracted: list[str], casefold: bool) -> list[str]:
    key = str.lower if casefold else (lambda s: s)
    seen = {key(item) for item in current}
    added: list[str] = []
    for item in extracted:
        k = key(item)
        if k not in seen:
            seen.add(k)
            added.append(item)
    return added


def _evolve_list(
    result: EvolutionResult,
    field: str,
    current: list[str],
    extracted: list[str] | None,
    casefold: bool,
) -> None:
    if not extracted:
        return
    added = _append_new(current, extracted, casefold)
    if not added:
        return
    merged = [*current, *added]
    result.updated[field] = merged
    result.changes.append(MemoryUpdate(field=field, old_value=list(current), new_value=merged, action="add"))


def evolve_profile(current: UserProfile, extracted: ExtractedPreferences) -> EvolutionResult:
    """Compute which profile fields change. Inputs are never mutated."""
    result = EvolutionResult()

    _evolve_list(result, "preferred_heroes", current.preferred_heroes, extracted.heroes, casefold=False)
    _evolve_list(result, "preferred_roles", current.preferred_roles, extracted.roles, casefold=True)

    # Rank changes over time, so the newest value wins
    if extracted.skill_level and extracted.skill_level != current.skill_level:
        result.updated["skill_level"] = extracted.skill_level
        result.changes.append(
            MemoryUpdate(
                field="skill_level",
                old_value=current.skill_level,
                new_value=extracted.skill_level,
                action="replace",
            )
        )

    if extracted.playstyle:
        if not current.playstyle:
            result.updated["playstyle"] = extracted.playstyle
            result.changes.append(
                MemoryUpdate(
                    field="playstyle",
                    old_value=current.playstyle,
                    new_value=extracted.playstyle,
                    action="replace",
                )
            )
        elif extracted.playstyle.lower() not in current.playstyle.lower():
            merged = f"{current.playstyle}, {extracted.playstyle}"
            result.updated["playstyle"] = merged
            result.changes.append(
                MemoryUpdate(field="playstyle", old_value=current.playstyle, new_value=merged, action="merge")
            )

    _evolve_list(result, "learning_goals", current.learning_goals, extracted.learning_goals, casefold=True)

    return result


def apply_evolution(profile: UserProfile, result: EvolutionResult) -> UserProfile:
    """Return a copy of `profile` with the evolved fields applied."""
    if not result.updated:
        return profile
    return profile.model_copy(update={**result.updated, "updated_at": datetime.now(timezone.utc)})


def describe_changes(result: EvolutionResult) -> str:
    return ", ".join(f"{c.field}: {c.action}" for c in result.changes)
