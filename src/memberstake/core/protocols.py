"""
memberstake - Collaborator Protocol Interfaces

The staking controller never moves tokens or issues badges itself. It talks
to two external collaborators through the structural interfaces below:

- ITokenLedger: a fungible balance ledger with approve/transferFrom semantics
  (the staking token and the reward token; they may be the same ledger).
- IMembershipBadgeRegistry: the badge ledger that knows how much stake a
  participant's badges lock, and calls back into the controller to move stake
  when a badge changes hands.

Thread Safety: the controller serializes its own calls into collaborators;
implementations shared with other writers must provide their own locking.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ITokenLedger(Protocol):
    """
    Protocol for a fungible token ledger.

    The signatures follow the caller-first convention of the in-process
    ERC20 contracts: the first argument is always the acting address.
    """

    def balance_of(self, account: str) -> int:
        """
        Get the token balance of an account.

        Args:
            account: Address to check

        Returns:
            Token balance
        """
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens owned by ``sender``.

        Returns:
            True if successful. Implementations may instead raise on failure;
            the controller treats both a False return and an exception as a
            failed transfer.
        """
        ...

    def transfer_from(
        self, spender: str, from_addr: str, to_addr: str, amount: int
    ) -> bool:
        """
        Transfer tokens using an allowance granted by ``from_addr`` to ``spender``.

        Returns:
            True if successful (see ``transfer`` for failure semantics)
        """
        ...


@runtime_checkable
class IMembershipBadgeRegistry(Protocol):
    """
    Protocol for the membership badge registry.

    On a badge transfer the registry looks up the per-class stake cost and calls
    ``StakingRewards.transfer_stake(registry.address, old_holder, new_holder, cost)``.
    """

    @property
    def address(self) -> str:
        """Identity the registry uses when calling into the controller."""
        ...

    def required_stake(self, account: str) -> int:
        """
        Get the stake the account's badges currently lock.

        Args:
            account: Participant address

        Returns:
            Minimum staked balance the account must keep
        """
        ...
