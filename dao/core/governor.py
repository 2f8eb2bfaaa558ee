# MIT License
# Copyright (c) 2025 Hashborn

"""
On-chain style governance: token holders vote on proposals and a timelock
executes the ones that pass.

A proposal is a list of method calls on registered targets (the treasury,
the timelock, the governor itself). Every call is made with the timelock's
address as caller, so a target owned by the timelock can only be changed
through a successful proposal.

Proposal lifecycle:

    PENDING -> ACTIVE -> SUCCEEDED -> QUEUED -> EXECUTED
    PENDING -> ACTIVE -> DEFEATED
    PENDING -> CANCELED

Voting power is each voter's delegated votes at vote_start. A proposal
succeeds when FOR + ABSTAIN reaches the quorum (a percentage of the total
supply at vote_start) and FOR outnumbers AGAINST.
"""
import hashlib
import json
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from tokenomics.config.params import CURRENT_CONFIG, FarmConfig
from tokenomics.types.common import FarmEvent, GovernanceError, UnauthorizedError
from tokenomics.types.governance import Proposal, ProposalAction, ProposalState, VoteType
from ..storage.db import StorageDB
from .clock import Clock
from .events import EventBus, event_bus
from .token import DAOToken

logger = logging.getLogger(__name__)

PROPOSER_ROLE = "proposer"
EXECUTOR_ROLE = "executor"

QUORUM_DENOMINATOR = 100


class TimelockController:
    """Delays queued operations and then runs them as its own address."""

    def __init__(self, clock: Clock, min_delay: int = 0, admin: Optional[str] = "owner",
                 address: str = "timelock"):
        self.clock = clock
        self.min_delay = min_delay
        self.admin = admin
        self.address = address

        self._roles: Dict[str, Set[str]] = {PROPOSER_ROLE: set(), EXECUTOR_ROLE: set()}
        self._targets: Dict[str, Tuple[Any, Set[str]]] = {}
        # operation id -> timestamp it becomes executable
        self._timestamps: Dict[str, int] = {}
        self._done: Set[str] = set()
        self._lock = threading.RLock()

    # --- Roles ---
    def grant_role(self, caller: str, role: str, account: str):
        if caller not in (self.admin, self.address):
            raise UnauthorizedError(f"{caller} is missing the timelock admin role")
        if role not in self._roles:
            raise GovernanceError(f"Unknown timelock role {role}")
        self._roles[role].add(account)
        logger.info(f"Timelock granted {role} to {account}")

    def has_role(self, role: str, account: str) -> bool:
        return account in self._roles.get(role, set())

    def renounce_admin(self, caller: str):
        if caller != self.admin:
            raise UnauthorizedError(f"{caller} is not the timelock admin")
        self.admin = None
        logger.info("Timelock admin renounced; roles can only change through proposals")

    # --- Targets ---
    def register_target(self, address: str, target: Any, methods: Iterable[str]):
        """Exposes methods of target to proposals. Each takes the caller address first."""
        methods = set(methods)
        for name in methods:
            if not callable(getattr(target, name, None)):
                raise GovernanceError(f"{address} has no method {name}")
        with self._lock:
            self._targets[address] = (target, methods)

    def check_action(self, action: ProposalAction):
        entry = self._targets.get(action.target)
        if entry is None:
            raise GovernanceError(f"Unknown proposal target {action.target}")
        if action.method not in entry[1]:
            raise GovernanceError(f"{action.method} is not callable on {action.target} by proposals")

    # --- Operations ---
    def get_min_delay(self) -> int:
        return self.min_delay

    def is_operation_pending(self, op_id: str) -> bool:
        return op_id in self._timestamps and op_id not in self._done

    def is_operation_ready(self, op_id: str) -> bool:
        return self.is_operation_pending(op_id) and self._timestamps[op_id] <= self.clock.now()

    def is_operation_done(self, op_id: str) -> bool:
        return op_id in self._done

    def schedule(self, caller: str, op_id: str, actions: List[ProposalAction], delay: Optional[int] = None) -> int:
        """Queues an operation. Returns the timestamp it becomes executable."""
        delay = self.min_delay if delay is None else delay
        with self._lock:
            self._require_role(PROPOSER_ROLE, caller)
            if op_id in self._timestamps:
                raise GovernanceError(f"Timelock operation {op_id[:10]} already scheduled")
            if delay < self.min_delay:
                raise GovernanceError(f"Delay {delay} below minimum {self.min_delay}")
            for action in actions:
                self.check_action(action)
            eta = self.clock.now() + delay
            self._timestamps[op_id] = eta
        logger.info(f"Timelock scheduled {op_id[:10]}, executable at {eta}")
        return eta

    def execute(self, caller: str, op_id: str, actions: List[ProposalAction]):
        with self._lock:
            self._require_role(EXECUTOR_ROLE, caller)
            if not self.is_operation_ready(op_id):
                raise GovernanceError(f"Timelock operation {op_id[:10]} is not ready")
            for action in actions:
                self.check_action(action)
            for action in actions:
                target, _ = self._targets[action.target]
                getattr(target, action.method)(self.address, **action.args)
            self._done.add(op_id)
        logger.info(f"Timelock executed {op_id[:10]} ({len(actions)} call(s))")

    def update_delay(self, caller: str, new_delay: int):
        if caller != self.address:
            raise UnauthorizedError("TimelockController: caller must be timelock")
        if new_delay < 0:
            raise GovernanceError(f"Delay must not be negative, got {new_delay}")
        logger.info(f"Timelock min delay {self.min_delay} -> {new_delay}")
        self.min_delay = new_delay

    def _require_role(self, role: str, caller: str):
        if not self.has_role(role, caller):
            raise UnauthorizedError(f"{caller} is missing the timelock {role} role")

    # --- Persistence ---
    def persist(self, db: StorageDB):
        with self._lock:
            db.set_states({
                "timelock:delay": str(self.min_delay),
                "timelock:admin": json.dumps(self.admin),
                "timelock:roles": json.dumps({r: sorted(a) for r, a in self._roles.items()}),
                "timelock:ops": json.dumps(self._timestamps),
                "timelock:done": json.dumps(sorted(self._done)),
            })

    def load(self, db: StorageDB):
        with self._lock:
            val = db.get_state("timelock:delay")
            if val is None:
                return
            self.min_delay = int(val)
            self.admin = json.loads(db.get_state("timelock:admin") or "null")
            roles = json.loads(db.get_state("timelock:roles") or "{}")
            for role, accounts in roles.items():
                self._roles[role] = set(accounts)
            self._timestamps = json.loads(db.get_state("timelock:ops") or "{}")
            self._done = set(json.loads(db.get_state("timelock:done") or "[]"))


class DAOGovernor:
    def __init__(self, token: DAOToken, timelock: TimelockController, clock: Clock,
                 config: FarmConfig = CURRENT_CONFIG, address: str = "governor",
                 events: EventBus = event_bus):
        self.token = token
        self.timelock = timelock
        self.clock = clock
        self.address = address
        self.events = events

        self.voting_delay = config.voting_delay_sec
        self.voting_period = config.voting_period_sec
        self.proposal_threshold = config.proposal_threshold
        self.quorum_numerator = config.quorum_numerator

        self._proposals: Dict[str, Proposal] = {}
        self._lock = threading.RLock()

    @staticmethod
    def hash_proposal(actions: List[ProposalAction], description: str) -> str:
        payload = json.dumps(
            {"actions": [a.model_dump() for a in actions], "description": description},
            sort_keys=True,
        )
        return hashlib.sha256(payload.encode()).hexdigest()

    # --- Proposals ---
    def propose(self, proposer: str, actions: List[ProposalAction], description: str) -> str:
        """Creates a proposal and returns its id."""
        if not actions:
            raise GovernanceError("Governor: empty proposal")
        for action in actions:
            self.timelock.check_action(action)

        with self._lock:
            now = self.clock.now()
            votes = self.token.get_past_votes(proposer, now - 1)
            if votes < self.proposal_threshold:
                raise GovernanceError(
                    f"Governor: proposer votes below threshold ({votes} < {self.proposal_threshold})"
                )
            proposal_id = self.hash_proposal(actions, description)
            if proposal_id in self._proposals:
                raise GovernanceError(f"Governor: proposal {proposal_id[:10]} already exists")

            vote_start = now + self.voting_delay
            self._proposals[proposal_id] = Proposal(
                id=proposal_id,
                proposer=proposer,
                actions=list(actions),
                description=description,
                vote_start=vote_start,
                vote_end=vote_start + self.voting_period,
            )
        logger.info(f"Proposal {proposal_id[:10]} by {proposer}: {description}")
        self.events.emit(FarmEvent.PROPOSAL_CREATED, proposal_id=proposal_id, proposer=proposer)
        return proposal_id

    def get_proposal(self, proposal_id: str) -> Proposal:
        with self._lock:
            return self._get(proposal_id).model_copy(deep=True)

    def proposal_ids(self) -> List[str]:
        with self._lock:
            return list(self._proposals.keys())

    def state(self, proposal_id: str) -> ProposalState:
        with self._lock:
            p = self._get(proposal_id)
            if p.executed:
                return ProposalState.EXECUTED
            if p.canceled:
                return ProposalState.CANCELED
            now = self.clock.now()
            if now <= p.vote_start:
                return ProposalState.PENDING
            if now <= p.vote_end:
                return ProposalState.ACTIVE
            if not (self._quorum_reached(p) and p.for_votes > p.against_votes):
                return ProposalState.DEFEATED
            if p.eta is None:
                return ProposalState.SUCCEEDED
            return ProposalState.QUEUED

    def quorum(self, timestamp: int) -> int:
        return self.token.get_past_total_supply(timestamp) * self.quorum_numerator // QUORUM_DENOMINATOR

    def _quorum_reached(self, p: Proposal) -> bool:
        return self.quorum(p.vote_start) <= p.for_votes + p.abstain_votes

    # --- Voting ---
    def cast_vote(self, voter: str, proposal_id: str, support: int) -> int:
        """Records the voter's past votes for the proposal. Returns the weight counted."""
        try:
            support = VoteType(support)
        except ValueError:
            raise GovernanceError(f"Governor: invalid vote type {support}")
        with self._lock:
            p = self._get(proposal_id)
            if self.state(proposal_id) != ProposalState.ACTIVE:
                raise GovernanceError("Governor: vote not currently active")
            if voter in p.votes:
                raise GovernanceError(f"Governor: {voter} already voted")

            weight = self.token.get_past_votes(voter, p.vote_start)
            if support == VoteType.FOR:
                p.for_votes += weight
            elif support == VoteType.AGAINST:
                p.against_votes += weight
            else:
                p.abstain_votes += weight
            p.votes[voter] = int(support)
        logger.info(f"{voter} voted {support.name} on {proposal_id[:10]} with {weight}")
        self.events.emit(FarmEvent.VOTE_CAST, proposal_id=proposal_id, voter=voter,
                         support=int(support), weight=weight)
        return weight

    def has_voted(self, proposal_id: str, voter: str) -> bool:
        with self._lock:
            return voter in self._get(proposal_id).votes

    # --- Execution ---
    def queue(self, proposal_id: str) -> int:
        with self._lock:
            p = self._get(proposal_id)
            if self.state(proposal_id) != ProposalState.SUCCEEDED:
                raise GovernanceError("Governor: proposal not successful")
            p.eta = self.timelock.schedule(self.address, p.id, p.actions)
        self.events.emit(FarmEvent.PROPOSAL_QUEUED, proposal_id=proposal_id, eta=p.eta)
        return p.eta

    def execute(self, proposal_id: str):
        with self._lock:
            p = self._get(proposal_id)
            if self.state(proposal_id) != ProposalState.QUEUED:
                raise GovernanceError("Governor: proposal not queued")
            self.timelock.execute(self.address, p.id, p.actions)
            p.executed = True
        logger.info(f"Proposal {proposal_id[:10]} executed")
        self.events.emit(FarmEvent.PROPOSAL_EXECUTED, proposal_id=proposal_id)

    def cancel(self, caller: str, proposal_id: str):
        """The proposer may withdraw a proposal before voting starts."""
        with self._lock:
            p = self._get(proposal_id)
            if caller != p.proposer:
                raise UnauthorizedError("Governor: only the proposer can cancel")
            if self.state(proposal_id) != ProposalState.PENDING:
                raise GovernanceError("Governor: too late to cancel")
            p.canceled = True
        self.events.emit(FarmEvent.PROPOSAL_CANCELED, proposal_id=proposal_id)

    # --- Settings changed through proposals ---
    def update_quorum_numerator(self, caller: str, new_numerator: int):
        self._only_governance(caller)
        if not 0 < new_numerator <= QUORUM_DENOMINATOR:
            raise GovernanceError(f"Quorum numerator must be in (0, {QUORUM_DENOMINATOR}], got {new_numerator}")
        logger.info(f"Quorum numerator {self.quorum_numerator} -> {new_numerator}")
        self.quorum_numerator = new_numerator

    def _only_governance(self, caller: str):
        if caller != self.timelock.address:
            raise UnauthorizedError("Governor: onlyGovernance")

    def _get(self, proposal_id: str) -> Proposal:
        p = self._proposals.get(proposal_id)
        if p is None:
            raise GovernanceError(f"Governor: unknown proposal id {proposal_id}")
        return p

    # --- Persistence ---
    def persist(self, db: StorageDB):
        with self._lock:
            db.set_states({
                "gov:proposals": json.dumps([p.model_dump() for p in self._proposals.values()]),
                "gov:quorum_numerator": str(self.quorum_numerator),
            })

    def load(self, db: StorageDB):
        with self._lock:
            raw = db.get_state("gov:proposals")
            if raw:
                self._proposals = {p.id: p for p in (Proposal.model_validate(d) for d in json.loads(raw))}
            val = db.get_state("gov:quorum_numerator")
            if val:
                self.quorum_numerator = int(val)
