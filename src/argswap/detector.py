"""Argument/parameter swap detection for a single invocation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from argswap.config import DEFAULT_BETA, DetectorConfig, NamePair
from argswap.model import Invocation, Resolution, SuggestedFix, SwapProposal
from argswap.naming import similarity, term_key
from argswap.types import swap_compatible


def is_disallowed_pair(
    first_param: str, second_param: str, pairs: frozenset[NamePair]
) -> bool:
    return frozenset((term_key(first_param), term_key(second_param))) in pairs


def find_best_match(
    candidates: Sequence[str | None],
    arg_name: str | None,
    param_name: str,
    beta: float = DEFAULT_BETA,
) -> int | None:
    """Index of the candidate that fits ``param_name`` significantly better.

    A candidate qualifies only when its similarity to the parameter exceeds the
    current argument's similarity by more than ``beta``. The best qualifying
    candidate wins; ties go to the lowest index. Returns None when the current
    argument should stay where it is.
    """
    current = similarity(arg_name, param_name)
    best_index: int | None = None
    best_score = 0.0
    for index, candidate in enumerate(candidates):
        score = similarity(candidate, param_name)
        if not score - current > beta:
            continue
        if best_index is None or score > best_score:
            best_index = index
            best_score = score
    return best_index


@dataclass(frozen=True)
class InvocationResolution:
    states: tuple[Resolution, ...]
    proposals: tuple[SwapProposal, ...]

    def order(self) -> tuple[int, ...]:
        """Argument index to place at each position once all swaps apply."""
        order = list(range(len(self.states)))
        for proposal in self.proposals:
            order[proposal.first], order[proposal.second] = (
                order[proposal.second],
                order[proposal.first],
            )
        return tuple(order)


def _pairable(invocation: Invocation, config: DetectorConfig, i: int, j: int) -> bool:
    parameters = invocation.parameters
    arguments = invocation.arguments
    if not arguments[j].swap_eligible:
        return False
    if not swap_compatible(
        invocation.environment,
        arguments[i].type,
        parameters[i].type,
        arguments[j].type,
        parameters[j].type,
    ):
        return False
    return not is_disallowed_pair(
        parameters[i].name, parameters[j].name, config.disallowed_pairs
    )


def resolve_invocation(
    invocation: Invocation, config: DetectorConfig | None = None
) -> InvocationResolution:
    """Single left-to-right sweep assigning every position KEPT or SWAPPED."""
    config = config or DetectorConfig()
    count = len(invocation)
    states = [Resolution.UNRESOLVED] * count
    proposals: list[SwapProposal] = []
    for i in range(count):
        if states[i] is not Resolution.UNRESOLVED:
            continue
        argument = invocation.arguments[i]
        if not argument.swap_eligible:
            states[i] = Resolution.KEPT
            continue
        pool = [
            j
            for j in range(count)
            if j != i
            and states[j] is Resolution.UNRESOLVED
            and _pairable(invocation, config, i, j)
        ]
        winner = find_best_match(
            [invocation.arguments[j].name for j in pool],
            argument.name,
            invocation.parameters[i].name,
            config.beta,
        )
        if winner is None:
            states[i] = Resolution.KEPT
            continue
        j = pool[winner]
        proposals.append(SwapProposal(i, j))
        states[i] = Resolution.SWAPPED
        states[j] = Resolution.SWAPPED
    return InvocationResolution(states=tuple(states), proposals=tuple(proposals))


def check_invocation(
    invocation: Invocation, config: DetectorConfig | None = None
) -> SuggestedFix | None:
    """At most one fix applying every proposed swap at once."""
    return suggested_fix(invocation, resolve_invocation(invocation, config))


def suggested_fix(
    invocation: Invocation, resolution: InvocationResolution
) -> SuggestedFix | None:
    if not resolution.proposals:
        return None
    order = resolution.order()
    arguments = tuple(invocation.arguments[index].source for index in order)
    return SuggestedFix(
        order=order,
        arguments=arguments,
        replacement=f"{invocation.callee}({', '.join(arguments)})",
    )
