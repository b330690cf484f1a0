# src/flockrewards/ledger/owner_split.py
from __future__ import annotations

from flockrewards.ledger.types import OwnerSplit


def owner_share_ratio(owner_stake: float, delegator_stake: float, sigma: float) -> float:
    """Fraction of a participant's reward that goes to the owner.

    sigma is a guaranteed owner cut; the remainder (1 - sigma) is shared
    pro rata with delegators by stake. Returns 0 when there is no stake.
    """
    owner = float(owner_stake)
    total = owner + float(delegator_stake)
    if total == 0:
        return 0.0
    s = float(sigma)
    return s + (1.0 - s) * (owner / total)


def split_owner_delegator(
    total_reward: float,
    owner_stake: float,
    delegator_stake: float,
    sigma: float,
) -> OwnerSplit:
    """Split one participant's reward between its owner and its delegators.

    A participant with zero total stake gets nothing on either side; its
    share is not redistributed.
    """
    if float(owner_stake) + float(delegator_stake) == 0:
        return OwnerSplit(owner_reward=0.0, delegator_reward=0.0)

    total = float(total_reward)
    owner_reward = total * owner_share_ratio(owner_stake, delegator_stake, sigma)
    return OwnerSplit(owner_reward=owner_reward, delegator_reward=total - owner_reward)
