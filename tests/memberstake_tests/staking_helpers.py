"""Shared constants and collaborator doubles for the staking tests."""

OWNER = "0xowner"
FUNDER = "0xfunder"
STAKING_ADDRESS = "0xstaking"
BADGES = "0xbadges"
ALICE = "0xalice"
BOB = "0xbob"
CAROL = "0xcarol"

# Default 14 day reward window
DURATION = 1_210_000
# Funding that yields a reward rate of exactly 1000 per second
ONE_THOUSAND_PER_SECOND = DURATION * 1000
START_TIME = 1_700_000_000
INITIAL_BALANCE = 10**24


class FakeClock:
    """Controllable time source returning whole seconds."""

    def __init__(self, start: int = START_TIME):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class InMemoryTokenLedger:
    """Fungible token double with allowance semantics."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        self.balances: dict[str, int] = {}
        self.allowances: dict[str, dict[str, int]] = {}

    def mint(self, to: str, amount: int) -> None:
        self.balances[to] = self.balances.get(to, 0) + amount

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        self.allowances.setdefault(owner, {})[spender] = amount
        return True

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        if self.balances.get(sender, 0) < amount:
            raise ValueError(f"{self.symbol}: transfer amount exceeds balance")
        self.balances[sender] -= amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount
        return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        allowance = self.allowances.get(from_addr, {}).get(spender, 0)
        if allowance < amount:
            raise ValueError(f"{self.symbol}: insufficient allowance")
        if self.balances.get(from_addr, 0) < amount:
            raise ValueError(f"{self.symbol}: transfer amount exceeds balance")
        self.allowances[from_addr][spender] = allowance - amount
        self.balances[from_addr] -= amount
        self.balances[to_addr] = self.balances.get(to_addr, 0) + amount
        return True


class FakeBadgeRegistry:
    """Badge registry double with configurable stake requirements."""

    def __init__(self, address: str = BADGES):
        self.address = address
        self.requirements: dict[str, int] = {}

    def required_stake(self, account: str) -> int:
        return self.requirements.get(account, 0)
