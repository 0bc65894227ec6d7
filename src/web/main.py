import logging
import os
from datetime import datetime
from typing import Any, List, Optional, Tuple

import numpy as np
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from storage.database import PollDatabase
from storage.errors import PollError, PollNotFoundError, ValidationError
from storage.intake import new_ballot, new_poll
from tabulation.irv import MajorityRule
from tabulation.models import Ballot, PollDefinition
from tabulation.results import round_summary, tabulate
from tabulation.verification import ResultsVerifier

logger = logging.getLogger(__name__)

DATABASE_ENV_VAR = "RCV_DATABASE_PATH"

app = FastAPI(
    title="Ranked Choice Polls",
    description="Instant-runoff poll tabulation with a Borda count cross-check",
)

# Global database path - a fresh connection is opened per request
db_path = None


class CreatePollRequest(BaseModel):
    title: str = ""
    description: str = ""
    candidates: List[str] = []
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")


class CreateVoteRequest(BaseModel):
    rankings: List[str] = []


def convert_numpy_types(obj: Any) -> Any:
    """Convert numpy types to native Python types for JSON serialization."""
    if isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, dict):
        return {k: convert_numpy_types(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [convert_numpy_types(item) for item in obj]
    else:
        return obj


@app.on_event("startup")
async def startup_event():
    """Initialize the application."""
    logger.info("Starting Ranked Choice Polls")


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up on shutdown."""
    logger.info("Shutting down Ranked Choice Polls")


def get_database() -> PollDatabase:
    """
    Open the configured poll database.

    Falls back to the RCV_DATABASE_PATH environment variable when no path was
    set programmatically.
    """
    path = db_path or os.environ.get(DATABASE_ENV_VAR)
    if not path:
        raise HTTPException(status_code=500, detail="Database not configured")
    return PollDatabase(path)


def set_database_path(path: str):
    """Set the database path for the application and make sure the schema exists."""
    global db_path
    db_path = path
    os.environ[DATABASE_ENV_VAR] = path
    logger.info(f"Database path set to: {path}")

    try:
        with PollDatabase(path) as database:
            database.initialize_schema()
        logger.info("Database connection test successful")
    except Exception as e:
        logger.error(f"Database connection test failed: {e}")
        raise


def to_http_error(error: PollError) -> HTTPException:
    """Map a boundary error onto the HTTP status the API reports."""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, PollNotFoundError):
        return HTTPException(status_code=404, detail="Poll not found")
    logger.error(f"Storage failure: {error}")
    return HTTPException(status_code=500, detail=str(error))


def parse_majority_rule(value: str) -> MajorityRule:
    try:
        return MajorityRule(value)
    except ValueError:
        allowed = ", ".join(rule.value for rule in MajorityRule)
        raise ValidationError(f"Unknown majority rule '{value}' (expected one of: {allowed})")


def load_snapshot(poll_id: str) -> Tuple[PollDefinition, List[Ballot]]:
    """Fetch a poll and all of its ballots in one connection."""
    with get_database() as database:
        poll = database.get_poll(poll_id)
        ballots = database.get_ballots(poll_id)
    logger.info(f"Loaded {len(ballots)} ballots for poll {poll_id}")
    return poll, ballots


# API Routes
@app.post("/polls", status_code=201)
async def create_poll(request: CreatePollRequest):
    """Create a new poll."""
    try:
        poll = new_poll(
            title=request.title,
            candidates=request.candidates,
            description=request.description,
            expires_at=request.expires_at,
        )
        with get_database() as database:
            database.create_poll(poll)
    except PollError as e:
        raise to_http_error(e)

    return poll.to_dict()


@app.get("/polls")
async def list_polls():
    """List all polls."""
    try:
        with get_database() as database:
            polls = database.list_polls()
    except PollError as e:
        raise to_http_error(e)

    return [poll.to_dict() for poll in polls]


@app.get("/polls/{poll_id}")
async def get_poll(poll_id: str):
    """Get a single poll definition."""
    try:
        with get_database() as database:
            poll = database.get_poll(poll_id)
    except PollError as e:
        raise to_http_error(e)

    return poll.to_dict()


@app.post("/polls/{poll_id}/vote", status_code=201)
async def create_vote(poll_id: str, request: CreateVoteRequest):
    """Submit a ranked ballot to a poll."""
    try:
        if not request.rankings:
            raise ValidationError("Rankings are required")
        with get_database() as database:
            poll = database.get_poll(poll_id)
            ballot = new_ballot(poll, request.rankings)
            database.add_ballot(ballot)
    except PollError as e:
        raise to_http_error(e)

    return ballot.to_dict()


@app.get("/polls/{poll_id}/results")
async def get_results(poll_id: str, majority: str = MajorityRule.ALL_BALLOTS.value):
    """Compute instant-runoff and Borda results for a poll."""
    try:
        rule = parse_majority_rule(majority)
        poll, ballots = load_snapshot(poll_id)
    except PollError as e:
        raise to_http_error(e)

    return tabulate(poll, ballots, majority_rule=rule).to_dict()


@app.get("/polls/{poll_id}/results/rounds")
async def get_round_summary(poll_id: str, majority: str = MajorityRule.ALL_BALLOTS.value):
    """Get round-by-round results as flat records."""
    try:
        rule = parse_majority_rule(majority)
        poll, ballots = load_snapshot(poll_id)
    except PollError as e:
        raise to_http_error(e)

    summary = round_summary(tabulate(poll, ballots, majority_rule=rule))
    return convert_numpy_types(summary.to_dict("records"))


@app.get("/polls/{poll_id}/results/verify")
async def verify_results(poll_id: str, majority: str = MajorityRule.ALL_BALLOTS.value):
    """Check the computed results against the tabulation invariants."""
    try:
        rule = parse_majority_rule(majority)
        poll, ballots = load_snapshot(poll_id)
    except PollError as e:
        raise to_http_error(e)

    result = tabulate(poll, ballots, majority_rule=rule)
    verifier = ResultsVerifier(poll, ballots, majority_rule=rule)
    return verifier.verify_results(result)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
