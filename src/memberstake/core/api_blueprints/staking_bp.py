"""
Staking API Blueprint

Handles staking endpoints: status and account views, stake, withdraw,
claim, exit, reward funding and owner configuration.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple, Type

from flask import Blueprint, Response, request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from memberstake.core.api_blueprints.base import (
    error_response,
    get_metrics,
    get_staking,
    staking_error_response,
    success_response,
)
from memberstake.core.input_validation_schemas import (
    AccountActionInput,
    FundingAuthorityInput,
    NotifyRewardInput,
    RewardDurationInput,
    StakeInput,
    WithdrawInput,
)
from memberstake.core.staking_exceptions import StakingError

logger = logging.getLogger(__name__)

staking_bp = Blueprint("staking", __name__, url_prefix="/staking")


def _parse(model: Type[BaseModel]) -> Tuple[Optional[BaseModel], Optional[Tuple[Any, int]]]:
    """Validate the JSON body against a schema."""
    payload = request.get_json(silent=True) or {}
    try:
        return model.model_validate(payload), None
    except PydanticValidationError as exc:
        logger.warning(
            "PydanticValidationError in %s",
            request.endpoint,
            extra={
                "error_type": "PydanticValidationError",
                "error": str(exc),
                "function": request.endpoint,
            },
        )
        return None, error_response("Invalid request body", status=400, code="invalid_payload")


@staking_bp.route("/status", methods=["GET"])
def get_status() -> Tuple[Any, int]:
    """Global reward schedule and accrual state."""
    return success_response({"status": get_staking().get_status()})


@staking_bp.route("/accounts/<address>", methods=["GET"])
def get_account(address: str) -> Tuple[Any, int]:
    """Position of one participant."""
    try:
        account = get_staking().get_account(address)
    except StakingError as exc:
        return staking_error_response(exc)
    return success_response({"account": account})


@staking_bp.route("/stake", methods=["POST"])
def stake() -> Tuple[Any, int]:
    model, error = _parse(StakeInput)
    if error:
        return error
    try:
        balance = get_staking().stake(model.address, model.amount)
    except StakingError as exc:
        return staking_error_response(exc)
    return success_response({"address": model.address, "staked_balance": balance})


@staking_bp.route("/withdraw", methods=["POST"])
def withdraw() -> Tuple[Any, int]:
    model, error = _parse(WithdrawInput)
    if error:
        return error
    try:
        balance = get_staking().withdraw(model.address, model.amount)
    except StakingError as exc:
        return staking_error_response(exc)
    return success_response({"address": model.address, "staked_balance": balance})


@staking_bp.route("/claim", methods=["POST"])
def claim() -> Tuple[Any, int]:
    model, error = _parse(AccountActionInput)
    if error:
        return error
    try:
        reward = get_staking().claim_reward(model.address)
    except StakingError as exc:
        return staking_error_response(exc)
    return success_response({"address": model.address, "reward": reward})


@staking_bp.route("/exit", methods=["POST"])
def exit_position() -> Tuple[Any, int]:
    model, error = _parse(AccountActionInput)
    if error:
        return error
    try:
        withdrawn, reward = get_staking().exit(model.address)
    except StakingError as exc:
        return staking_error_response(exc)
    return success_response(
        {"address": model.address, "withdrawn": withdrawn, "reward": reward}
    )


@staking_bp.route("/notify", methods=["POST"])
def notify_reward_amount() -> Tuple[Any, int]:
    """Fund a new reward period or top up the current one."""
    model, error = _parse(NotifyRewardInput)
    if error:
        return error
    staking = get_staking()
    try:
        rate = staking.notify_reward_amount(model.caller, model.amount)
    except StakingError as exc:
        return staking_error_response(exc)
    return success_response({"reward_rate": rate, "period_finish": staking.period_finish})


@staking_bp.route("/admin/funding-authority", methods=["POST"])
def set_funding_authority() -> Tuple[Any, int]:
    model, error = _parse(FundingAuthorityInput)
    if error:
        return error
    staking = get_staking()
    try:
        staking.set_funding_authority(model.caller, model.address)
    except StakingError as exc:
        return staking_error_response(exc)
    return success_response({"funding_authority": staking.funding_authority})


@staking_bp.route("/admin/reward-duration", methods=["POST"])
def set_reward_duration() -> Tuple[Any, int]:
    model, error = _parse(RewardDurationInput)
    if error:
        return error
    staking = get_staking()
    try:
        staking.set_reward_duration(model.caller, model.duration)
    except StakingError as exc:
        return staking_error_response(exc)
    return success_response({"reward_duration": staking.reward_duration})


@staking_bp.route("/metrics", methods=["GET"])
def metrics() -> Any:
    """Prometheus exposition of the staking metrics."""
    collector = get_metrics()
    if collector is None:
        return error_response("Metrics are disabled", status=404, code="metrics_disabled")
    return Response(collector.export(), mimetype="text/plain; version=0.0.4; charset=utf-8")
