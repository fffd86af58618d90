from __future__ import annotations

from pydantic import BaseModel, conint, constr

# Addresses arrive in whatever case and padding the client used
Address = constr(strip_whitespace=True, to_lower=True, min_length=1)


class StakeInput(BaseModel):
    address: Address
    amount: conint(gt=0)

class WithdrawInput(BaseModel):
    address: Address
    amount: conint(gt=0)

class AccountActionInput(BaseModel):
    address: Address

class NotifyRewardInput(BaseModel):
    caller: Address
    amount: conint(gt=0)

class FundingAuthorityInput(BaseModel):
    caller: Address
    address: Address

class RewardDurationInput(BaseModel):
    caller: Address
    duration: conint(gt=0)
