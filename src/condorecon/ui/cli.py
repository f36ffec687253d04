from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from condorecon.app import (
    apply_match_suggestion,
    approve_manual_case,
    assign_house_to_deposit,
    find_match_suggestions,
    get_manual_validation_stats,
    init_database,
    list_manual_cases,
    list_unclaimed_deposits,
    list_unfunded_vouchers,
    match_voucher_to_deposit,
    reject_manual_case,
)
from condorecon.config import configure_logging
from condorecon.domain.errors import InvalidInputError
from condorecon.domain.reconciliation import (
    ManualCasesQuery,
    UnclaimedDepositsQuery,
    UnfundedVouchersQuery,
)
from condorecon.ui.schema import (
    ApplyMatchRequest,
    ApplyMatchResponse,
    ApproveCaseRequest,
    ApproveCaseResponse,
    AssignHouseRequest,
    AssignHouseResponse,
    CamelModel,
    ManualCasesPageResponse,
    ManualValidationStatsResponse,
    MatchSuggestionsResponse,
    MatchVoucherRequest,
    RejectCaseRequest,
    RejectCaseResponse,
    UnclaimedDepositsPageResponse,
    UnfundedVouchersPageResponse,
    VoucherMatchResponse,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

MANUAL_VALIDATION_COMMANDS = frozenset(
    {"manual-cases", "approve-case", "reject-case", "manual-stats"}
)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile bank deposits with payment vouchers")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the database schema")
    subparsers.add_parser("suggestions", help="Suggest deposit/voucher cross-matches")

    apply = subparsers.add_parser("apply", help="Apply a cross-match suggestion")
    apply.add_argument("--deposit-id", type=int, required=True, help="Bank transaction id")
    apply.add_argument("--voucher-id", type=int, required=True, help="Voucher id")
    apply.add_argument("--house-number", type=int, required=True, help="House to credit")
    apply.add_argument("--user-id", type=str, required=True, help="Approving user id")
    apply.add_argument("--notes", type=str, help="Optional administrator notes")
    apply.add_argument(
        "--strict",
        action="store_true",
        help="Fail when another request confirmed the deposit in the meantime",
    )

    assign = subparsers.add_parser(
        "assign-house",
        help="Assign a house to an unclaimed deposit without a voucher",
    )
    assign.add_argument("--deposit-id", type=int, required=True, help="Bank transaction id")
    assign.add_argument("--house-number", type=int, required=True, help="House to credit")
    assign.add_argument("--user-id", type=str, required=True, help="Approving user id")
    assign.add_argument("--notes", type=str, help="Optional administrator notes")

    unclaimed = subparsers.add_parser("unclaimed", help="List unclaimed deposits")
    _add_listing_arguments(unclaimed)
    unclaimed.add_argument(
        "--status",
        choices=("conflict", "not-found", "all"),
        default="all",
        help="Restrict to one unclaimed status (default: %(default)s)",
    )
    unclaimed.add_argument(
        "--house-number",
        type=int,
        help="Only deposits whose cents suggest this house",
    )

    unfunded = subparsers.add_parser("unfunded", help="List unfunded vouchers")
    _add_listing_arguments(unfunded)

    match = subparsers.add_parser(
        "match-voucher",
        help="Reconcile an unfunded voucher with a chosen deposit",
    )
    match.add_argument("--voucher-id", type=int, required=True, help="Voucher id")
    match.add_argument("--deposit-id", type=int, required=True, help="Bank transaction id")
    match.add_argument("--house-number", type=int, required=True, help="House to credit")
    match.add_argument("--user-id", type=str, required=True, help="Approving user id")
    match.add_argument("--notes", type=str, help="Optional administrator notes")

    manual = subparsers.add_parser("manual-cases", help="List deposits awaiting a manual decision")
    _add_listing_arguments(manual, sort_choices=("date", "similarity", "candidates"))
    manual.add_argument(
        "--house-number",
        type=int,
        help="Only deposits whose cents suggest this house",
    )

    approve = subparsers.add_parser("approve-case", help="Approve one candidate of a manual case")
    approve.add_argument("--deposit-id", type=int, required=True, help="Bank transaction id")
    approve.add_argument("--voucher-id", type=int, required=True, help="Chosen voucher id")
    approve.add_argument("--user-id", type=str, required=True, help="Approving user id")
    approve.add_argument("--notes", type=str, help="Optional approval notes")

    reject = subparsers.add_parser("reject-case", help="Reject a manual case")
    reject.add_argument("--deposit-id", type=int, required=True, help="Bank transaction id")
    reject.add_argument("--user-id", type=str, required=True, help="Rejecting user id")
    reject.add_argument("--reason", type=str, required=True, help="Why the case is rejected")
    reject.add_argument("--notes", type=str, help="Optional notes")

    subparsers.add_parser("manual-stats", help="Summarise the manual validation queue")

    return parser.parse_args(list(argv))


def _add_listing_arguments(
    parser: argparse.ArgumentParser,
    *,
    sort_choices: tuple[str, ...] = ("date", "amount"),
) -> None:
    parser.add_argument("--start", type=_parse_iso_date, help="Inclusive start day (YYYY-MM-DD)")
    parser.add_argument("--end", type=_parse_iso_date, help="Inclusive end day (YYYY-MM-DD)")
    parser.add_argument("--page", type=int, default=1, help="Page number (default: %(default)s)")
    parser.add_argument("--limit", type=int, default=20, help="Page size (default: %(default)s)")
    parser.add_argument(
        "--sort-by",
        choices=sort_choices,
        default="date",
        help="Sort key (default: %(default)s)",
    )


def _parse_iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid ISO date: {value}") from exc


def _validate_window(args: argparse.Namespace) -> None:
    start = getattr(args, "start", None)
    end = getattr(args, "end", None)
    if start and end and start > end:
        raise ValueError("Start day must not be after end day")


def _emit(payload: CamelModel) -> None:
    print(payload.to_json())  # noqa: T201


def _run(args: argparse.Namespace) -> None:
    if args.command == "init-db":
        init_database()
    elif args.command == "suggestions":
        _emit(MatchSuggestionsResponse.from_domain(find_match_suggestions()))
    elif args.command == "apply":
        request = ApplyMatchRequest(
            deposit_id=args.deposit_id,
            voucher_id=args.voucher_id,
            house_number=args.house_number,
            user_id=args.user_id,
            admin_notes=args.notes,
        )
        result = apply_match_suggestion(
            request.deposit_id,
            request.voucher_id,
            request.house_number,
            request.user_id,
            request.admin_notes,
            strict_transition=args.strict,
        )
        _emit(ApplyMatchResponse.from_domain(result))
    elif args.command == "assign-house":
        request = AssignHouseRequest(
            deposit_id=args.deposit_id,
            house_number=args.house_number,
            user_id=args.user_id,
            admin_notes=args.notes,
        )
        result = assign_house_to_deposit(
            request.deposit_id,
            request.house_number,
            request.user_id,
            request.admin_notes,
        )
        _emit(AssignHouseResponse.from_domain(result))
    elif args.command == "unclaimed":
        page = list_unclaimed_deposits(
            UnclaimedDepositsQuery(
                start_date=args.start,
                end_date=args.end,
                validation_status=args.status,
                house_number=args.house_number,
                page=args.page,
                limit=args.limit,
                sort_by=args.sort_by,
            )
        )
        _emit(UnclaimedDepositsPageResponse.from_domain(page))
    elif args.command == "unfunded":
        page = list_unfunded_vouchers(
            UnfundedVouchersQuery(
                start_date=args.start,
                end_date=args.end,
                page=args.page,
                limit=args.limit,
                sort_by=args.sort_by,
            )
        )
        _emit(UnfundedVouchersPageResponse.from_domain(page))
    elif args.command == "match-voucher":
        request = MatchVoucherRequest(
            voucher_id=args.voucher_id,
            deposit_id=args.deposit_id,
            house_number=args.house_number,
            user_id=args.user_id,
            admin_notes=args.notes,
        )
        result = match_voucher_to_deposit(
            request.voucher_id,
            request.deposit_id,
            request.house_number,
            request.user_id,
            request.admin_notes,
        )
        _emit(VoucherMatchResponse.from_domain(result))
    elif args.command in MANUAL_VALIDATION_COMMANDS:
        _run_manual_validation(args)
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def _run_manual_validation(args: argparse.Namespace) -> None:
    if args.command == "manual-cases":
        page = list_manual_cases(
            ManualCasesQuery(
                start_date=args.start,
                end_date=args.end,
                house_number=args.house_number,
                page=args.page,
                limit=args.limit,
                sort_by=args.sort_by,
            )
        )
        _emit(ManualCasesPageResponse.from_domain(page))
    elif args.command == "approve-case":
        request = ApproveCaseRequest(
            deposit_id=args.deposit_id,
            voucher_id=args.voucher_id,
            user_id=args.user_id,
            approval_notes=args.notes,
        )
        result = approve_manual_case(
            request.deposit_id,
            request.voucher_id,
            request.user_id,
            request.approval_notes,
        )
        _emit(ApproveCaseResponse.from_domain(result))
    elif args.command == "reject-case":
        request = RejectCaseRequest(
            deposit_id=args.deposit_id,
            user_id=args.user_id,
            rejection_reason=args.reason,
            notes=args.notes,
        )
        result = reject_manual_case(
            request.deposit_id,
            request.user_id,
            request.rejection_reason,
            request.notes,
        )
        _emit(RejectCaseResponse.from_domain(result))
    elif args.command == "manual-stats":
        _emit(ManualValidationStatsResponse.from_domain(get_manual_validation_stats()))
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate_window(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run(parsed_args)
    except (InvalidInputError, ValueError):
        log.exception("Rejected request")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
