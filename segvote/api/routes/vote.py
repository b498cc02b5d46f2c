"""Vote API routes.

Two surfaces over the same VoteSubmissionService:

- /api/voteOnSponsorTime: the query-string contract existing clients
  use. Success is an empty 200, rejections are plain-text 400/403, and
  unexpected failures are a JSON 500.
- /v1/segments/{segment_id}/votes: JSON body, structured VoteResponse,
  RFC 7807 problem details on rejection.

Notifications are dispatched as a background task after the response
is sent.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from structlog import get_logger

from segvote.api.dependencies.vote import get_vote_config, get_vote_submission_service
from segvote.api.models.vote import (
    SubmitVoteRequest,
    VoteErrorResponse,
    VoteResponse,
)
from segvote.application.ports.vote_submission import VoteOutcome, VoteRequest
from segvote.application.services.vote_submission_service import (
    VoteSubmissionService,
)
from segvote.config.vote_config import (
    CLOUDFLARE_PROXY,
    FORWARDED_FOR_PROXY,
    VoteConfig,
)
from segvote.domain.errors import MalformedVoteRequestError, VoteRejectedError

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal error creating segment vote"

router = APIRouter(tags=["votes"])


def get_client_ip(request: Request, config: VoteConfig) -> str:
    """Client address, taken from the configured proxy header if any."""
    if config.behind_proxy == FORWARDED_FOR_PROXY:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    elif config.behind_proxy == CLOUDFLARE_PROXY:
        connecting_ip = request.headers.get("cf-connecting-ip")
        if connecting_ip:
            return connecting_ip
    return request.client.host if request.client else ""


def _parse_vote_type(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise MalformedVoteRequestError("vote type must be an integer") from None


async def _dispatch_notification(
    service: VoteSubmissionService, outcome: VoteOutcome
) -> None:
    # async so it runs on the event loop rather than in the threadpool
    service.dispatch_notification(outcome)


@router.api_route(
    "/api/voteOnSponsorTime",
    methods=["GET", "POST"],
    response_class=Response,
    responses={
        200: {"description": "Vote accepted"},
        400: {"description": "Malformed request or unknown target"},
        403: {"description": "Vote rejected or segment locked by a moderator"},
        500: {"description": "Internal error"},
    },
    summary="Vote on a segment (query-string contract)",
)
async def vote_on_sponsor_time(
    request: Request,
    background_tasks: BackgroundTasks,
    service: VoteSubmissionService = Depends(get_vote_submission_service),
    config: VoteConfig = Depends(get_vote_config),
) -> Response:
    """Vote on a segment with UUID, userID, type and category query parameters."""
    params = request.query_params
    try:
        vote_request = VoteRequest(
            segment_id=params.get("UUID"),
            raw_user_id=params.get("userID"),
            client_ip=get_client_ip(request, config),
            vote_type=_parse_vote_type(params.get("type")),
            category=params.get("category"),
        )
        outcome = await service.submit_vote(vote_request)
    except VoteRejectedError as e:
        return PlainTextResponse(str(e), status_code=e.http_status)
    except Exception:
        return JSONResponse({"error": INTERNAL_ERROR_MESSAGE}, status_code=500)

    background_tasks.add_task(_dispatch_notification, service, outcome)
    if outcome.message:
        return PlainTextResponse(outcome.message, status_code=outcome.http_status)
    return Response(status_code=outcome.http_status)


@router.post(
    "/v1/segments/{segment_id}/votes",
    response_model=VoteResponse,
    responses={
        400: {"model": VoteErrorResponse, "description": "Vote rejected"},
        403: {
            "model": VoteErrorResponse,
            "description": "Vote rejected by moderation, or acknowledged on a locked segment",
        },
    },
    summary="Vote on a segment",
)
async def submit_segment_vote(
    segment_id: str,
    request_data: SubmitVoteRequest,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    service: VoteSubmissionService = Depends(get_vote_submission_service),
    config: VoteConfig = Depends(get_vote_config),
) -> VoteResponse:
    """Cast a score or category vote on a segment.

    A vote on a moderator-locked segment answers 403 with a VoteResponse
    whose status is moderation_locked; nothing is applied.
    """
    try:
        outcome = await service.submit_vote(
            VoteRequest(
                segment_id=segment_id,
                raw_user_id=request_data.user_id,
                client_ip=get_client_ip(request, config),
                vote_type=request_data.type,
                category=request_data.category,
            )
        )
    except VoteRejectedError as e:
        detail = e.to_rfc7807_dict()
        detail["instance"] = request.url.path
        raise HTTPException(status_code=e.http_status, detail=detail) from None
    except Exception:
        raise HTTPException(
            status_code=500,
            detail={
                "type": "urn:segvote:vote:internal-error",
                "title": "Internal Error",
                "status": 500,
                "detail": INTERNAL_ERROR_MESSAGE,
                "instance": request.url.path,
            },
        ) from None

    background_tasks.add_task(_dispatch_notification, service, outcome)
    response.status_code = outcome.http_status
    return VoteResponse(
        segment_id=segment_id,
        status=outcome.status.value,
        counted=outcome.counted,
        message=outcome.message,
        delta=outcome.delta,
        votes_before=outcome.votes_before,
        votes_after=outcome.votes_after,
        category=outcome.category,
        category_changed=outcome.category_changed,
    )
