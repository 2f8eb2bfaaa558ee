# MIT License
# Copyright (c) 2025 Hashborn

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from pydantic import BaseModel
from typing import Optional
import logging

from tokenomics.types.common import UnsupportedAssetError, ValidationError
from ..core.divs import DivsDistributor
from ..core.farm import DAOTokenFarm
from ..core.governor import DAOGovernor
from ..observability.metrics import metrics_registry, update_metrics

logger = logging.getLogger(__name__)

app = FastAPI(title="DAO Farm RPC")

farm: Optional[DAOTokenFarm] = None
divs: Optional[DivsDistributor] = None
governor: Optional[DAOGovernor] = None


class StakeRequest(BaseModel):
    account: str
    asset: str
    amount: int
    move_lp: bool = True   # deposit or withdraw the LP tokens along with the stake change


class AccountRequest(BaseModel):
    account: str


class VoteRequest(BaseModel):
    voter: str
    proposal_id: str
    support: int   # 0 against, 1 for, 2 abstain


def _require_farm() -> DAOTokenFarm:
    if not farm:
        raise HTTPException(status_code=503, detail="Farm not initialized")
    return farm


def _require_divs() -> DivsDistributor:
    if not divs:
        raise HTTPException(status_code=503, detail="Dividends distributor not initialized")
    return divs


def _require_governor() -> DAOGovernor:
    if not governor:
        raise HTTPException(status_code=503, detail="Governor not initialized")
    return governor


def _reject(e: ValidationError):
    status = 404 if isinstance(e, UnsupportedAssetError) else 400
    logger.warning(f"Rejected request: {e}")
    raise HTTPException(status_code=status, detail=str(e))


@app.get("/status")
async def get_status():
    f = _require_farm()
    now = f.clock.now()
    return {
        "network": f.config.network_id,
        "time": now,
        "lp_tokens": f.get_lp_tokens(),
        "reward_periods": f.reward_periods_count(),
        "schedule_exhausted": f.schedule.is_exhausted(now) if f.schedule else False,
        "total_claimed": str(f.total_claimed()),
        "token_supply": str(f.token.total_supply),
    }


def _current_period(f: DAOTokenFarm, now: int) -> Optional[int]:
    period = f.schedule.period_at(now) if f.schedule else None
    return period.id if period else None


@app.get("/schedule")
async def get_schedule():
    f = _require_farm()
    now = f.clock.now()
    return {
        "periods": [
            {"id": p.id, "start": p.start, "end": p.end, "reward": str(p.reward)}
            for p in f.get_reward_periods()
        ],
        "current_period": _current_period(f, now),
        "emitted": str(f.schedule.emitted_until(now)) if f.schedule else "0",
    }


@app.get("/claimable/{account}")
async def get_claimable(account: str):
    f = _require_farm()
    return {"account": account, "claimable": str(f.claimable_reward(account))}


@app.get("/stake/{account}/{asset}")
async def get_stake(account: str, asset: str):
    f = _require_farm()
    if asset not in f.get_lp_tokens():
        raise HTTPException(status_code=404, detail=f"LP token {asset} is not supported")
    return {
        "account": account,
        "asset": asset,
        "staked": str(f.get_staked_balance(account, asset)),
        "unstaked": str(f.get_unstaked_balance(account, asset)),
    }


@app.post("/stake")
async def post_stake(req: StakeRequest):
    f = _require_farm()
    try:
        if req.move_lp:
            f.deposit_and_start_stake(req.account, req.asset, req.amount)
        else:
            f.start_stake(req.account, req.asset, req.amount)
    except ValidationError as e:
        _reject(e)
    return {"status": "staked", "staked": str(f.get_staked_balance(req.account, req.asset))}


@app.post("/unstake")
async def post_unstake(req: StakeRequest):
    f = _require_farm()
    try:
        if req.move_lp:
            paid = f.end_stake_and_withdraw(req.account, req.asset, req.amount)
        else:
            paid = f.end_stake(req.account, req.asset, req.amount)
    except ValidationError as e:
        _reject(e)
    return {"status": "unstaked", "reward_paid": str(paid)}


@app.post("/claim")
async def post_claim(req: AccountRequest):
    f = _require_farm()
    try:
        paid = f.claim_reward(req.account)
    except ValidationError as e:
        _reject(e)
    return {"account": req.account, "reward_paid": str(paid)}


@app.get("/divs/{account}")
async def get_divs(account: str):
    d = _require_divs()
    return {
        "account": account,
        "intervals": d.get_distribution_intervals_count(),
        "claimable": str(d.claimable_divs(account)),
    }


@app.post("/divs/claim")
async def post_divs_claim(req: AccountRequest):
    d = _require_divs()
    try:
        paid = d.claim_divs(req.account)
    except ValidationError as e:
        _reject(e)
    return {"account": req.account, "claimed": str(paid)}


@app.get("/proposals/{proposal_id}")
async def get_proposal(proposal_id: str):
    g = _require_governor()
    try:
        p = g.get_proposal(proposal_id)
        state = g.state(proposal_id)
    except ValidationError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {
        "id": p.id,
        "proposer": p.proposer,
        "description": p.description,
        "state": state.value,
        "vote_start": p.vote_start,
        "vote_end": p.vote_end,
        "for_votes": str(p.for_votes),
        "against_votes": str(p.against_votes),
        "abstain_votes": str(p.abstain_votes),
        "quorum": str(g.quorum(p.vote_start)),
        "eta": p.eta,
    }


@app.post("/vote")
async def post_vote(req: VoteRequest):
    g = _require_governor()
    try:
        weight = g.cast_vote(req.voter, req.proposal_id, req.support)
    except ValidationError as e:
        _reject(e)
    return {"proposal_id": req.proposal_id, "voter": req.voter, "weight": str(weight)}


@app.get("/metrics")
async def get_metrics():
    if farm:
        update_metrics(farm)
    return Response(content=generate_latest(metrics_registry), media_type=CONTENT_TYPE_LATEST)
