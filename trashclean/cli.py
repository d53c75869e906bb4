"""
Trash Clean - Command line
List nearby litter, verify a pickup from a photo file, or report an issue.

    trashclean nearby --lat 46.0569 --lon 14.5058
    trashclean verify trash-42 --photo pickup.jpg --lat 46.0569 --lon 14.5058
    trashclean issue trash-42 not_found --description "nothing there"

The bearer token is read from TRASHCLEAN_AUTH_TOKEN.
"""

import argparse
import sys
from typing import List, Optional

import httpx

from trashclean.core.auth import EnvTokenSource
from trashclean.core.config import settings
from trashclean.core.constants import ISSUE_TYPES
from trashclean.core.errors import TrashCleanError
from trashclean.core.geo_utils import Coordinate, distance_between
from trashclean.core.logging import get_logger, setup_logging
from trashclean.ingestion.nearby_client import NearbyItemResolver
from trashclean.verification.capture import CaptureCoordinator
from trashclean.verification.models import Accepted, Photo, RejectedByProximity, TransientError
from trashclean.verification.submission_client import VerificationClient
from trashclean.verification.workflow import VerificationState, VerificationWorkflow

logger = get_logger("cli")


class FilePhotoSource:
    """Camera stand-in that reads an image file on every shot."""

    def __init__(self, path: str):
        self.path = path

    def take_photo(self) -> Photo:
        return Photo.from_path(self.path)


class FixedLocationSource:
    """Positioning stand-in that reports the coordinates given on the command line."""

    def __init__(self, location: Coordinate):
        self.location = location

    def current_location(self, timeout_seconds: float) -> Coordinate:
        return self.location


def _location(args: argparse.Namespace) -> Coordinate:
    return Coordinate(args.lat, args.lon, accuracy_meters=args.accuracy)


def cmd_nearby(args: argparse.Namespace, http_client: Optional[httpx.Client]) -> int:
    center = _location(args)
    with NearbyItemResolver(EnvTokenSource(), http_client=http_client) as resolver:
        reports = resolver.list_nearby(center, args.radius)

    if not reports:
        print("No pending litter nearby.")
        return 0

    for report in reports:
        distance = distance_between(center, report.location)
        print(f"{report.id:<20} {distance:>6.0f} m  {report.points_offered:>4} pts  {report.description}")
    return 0


def cmd_verify(args: argparse.Namespace, http_client: Optional[httpx.Client]) -> int:
    location = _location(args)
    token_source = EnvTokenSource()

    with NearbyItemResolver(token_source, http_client=http_client) as resolver:
        reports = resolver.list_nearby(location)
    target = next((r for r in reports if r.id == args.item_id), None)
    if target is None:
        print(f"Item {args.item_id} is not pending within {settings.nearby_radius_meters:.0f} m.")
        return 1

    coordinator = CaptureCoordinator(FilePhotoSource(args.photo), FixedLocationSource(location))
    with VerificationClient(token_source, http_client=http_client) as client:
        workflow = VerificationWorkflow(target, coordinator, client)
        state = workflow.run()

        retries = args.retries
        while state == VerificationState.TRANSIENT_ERROR and retries > 0:
            retries -= 1
            logger.info(f"Retrying submission for {target.id} ({retries} left)")
            state = workflow.retry()

    if state == VerificationState.CAPTURING:
        failure = workflow.last_capture_failure
        reasons = ", ".join(failure.reasons) if failure else "capture incomplete"
        print(f"Could not capture evidence: {reasons}")
        return 1

    outcome = workflow.outcome
    if isinstance(outcome, Accepted):
        print(f"Pickup verified: +{outcome.points_earned} points. {outcome.message}".rstrip())
        return 0
    if isinstance(outcome, RejectedByProximity):
        print(
            f"Too far from the item: {outcome.distance_meters:.0f} m "
            f"(must be within {outcome.threshold_meters:.0f} m)"
        )
    elif isinstance(outcome, TransientError):
        print(f"Network problem, try again later: {outcome.cause}")
    else:
        print(f"Verification rejected: {outcome.reason}")
    return 1


def cmd_issue(args: argparse.Namespace, http_client: Optional[httpx.Client]) -> int:
    with VerificationClient(EnvTokenSource(), http_client=http_client) as client:
        client.report_issue(args.item_id, args.issue_type, args.description)
    print(f"Issue '{args.issue_type}' reported for {args.item_id}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trashclean", description="Trash Clean pickup tools")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_location(p: argparse.ArgumentParser) -> None:
        p.add_argument("--lat", type=float, required=True, help="latitude in degrees")
        p.add_argument("--lon", type=float, required=True, help="longitude in degrees")
        p.add_argument("--accuracy", type=float, default=None, help="GPS accuracy in meters")

    nearby = sub.add_parser("nearby", help="list pending litter around a location")
    add_location(nearby)
    nearby.add_argument("--radius", type=float, default=None, help="search radius in meters")
    nearby.set_defaults(handler=cmd_nearby)

    verify = sub.add_parser("verify", help="verify a pickup with a photo file")
    verify.add_argument("item_id")
    verify.add_argument("--photo", required=True, help="path to the pickup photo")
    add_location(verify)
    verify.add_argument("--retries", type=int, default=1, help="resends after a network error")
    verify.set_defaults(handler=cmd_verify)

    issue = sub.add_parser("issue", help="report a problem with a litter item")
    issue.add_argument("item_id")
    issue.add_argument("issue_type", choices=ISSUE_TYPES)
    issue.add_argument("--description", default="")
    issue.set_defaults(handler=cmd_issue)

    return parser


def main(argv: Optional[List[str]] = None, http_client: Optional[httpx.Client] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        return args.handler(args, http_client)
    except (TrashCleanError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
