#!/usr/bin/env python3
"""
Local booking harness (no web server).

Usage:
  python3 scripts/book_local.py login --mobile 9999999999 --password secret
  python3 scripts/book_local.py book --doctor 7 --hospital 3 --date 2024-05-01 --time 14:30 \
      --name "Asha Rao" --phone 9999999999
  python3 scripts/book_local.py resume     # after paying in the browser
  python3 scripts/book_local.py status
  python3 scripts/book_local.py logout

What it does:
- Uses the same wiring as the web app, but opens the hosted checkout in your browser
- Persists the pending payment in STORAGE_PATH so `resume` works after closing the terminal
- Polls the backend until the payment settles (Ctrl+C stops polling, keeps the record)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from careconnect.core.config import settings
from careconnect.domain.entities.booking import BookingKind
from careconnect.domain.entities.payment_state import PaymentSnapshot
from careconnect.infrastructure.backend.api_client import BackendApiClient
from careconnect.infrastructure.backend.auth_client import AuthClient
from careconnect.infrastructure.backend.auth_session import AuthSession
from careconnect.infrastructure.checkout.navigators import BrowserNavigator
from careconnect.infrastructure.store.json_store import JsonLocalStorage
from careconnect.wiring.dependencies import build_booking_use_case, build_launcher, build_reconciler


def _print_snapshot(snapshot: PaymentSnapshot) -> None:
    line = f"[payment] {snapshot.status.value}"
    if snapshot.pending:
        line += f" payment_id={snapshot.pending.payment_id} booking_id={snapshot.pending.booking_id}"
    if snapshot.message:
        line += f" - {snapshot.message}"
    print(line)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Book and pay from the terminal.")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login")
    login.add_argument("--mobile", required=True)
    login.add_argument("--password", required=True)

    book = sub.add_parser("book")
    book.add_argument("--kind", choices=[k.value for k in BookingKind], default="appointment")
    book.add_argument("--name", dest="patient_name", required=True)
    book.add_argument("--phone", required=True)
    book.add_argument("--date", required=True)
    book.add_argument("--time", required=True)
    book.add_argument("--doctor", required=True)
    book.add_argument("--hospital", required=True)
    book.add_argument("--specialty", default="")
    book.add_argument("--notes", default=None)

    sub.add_parser("logout")
    sub.add_parser("resume")
    sub.add_parser("status")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    storage = JsonLocalStorage(path=settings.STORAGE_PATH)
    api = BackendApiClient(
        base_url=settings.BACKEND_BASE_URL,
        session=AuthSession(storage),
        timeout=settings.BACKEND_TIMEOUT_SECONDS,
    )
    reconciler = build_reconciler(storage, api, build_launcher(BrowserNavigator()))
    reconciler.subscribe(_print_snapshot)

    try:
        if args.command == "login":
            user = await AuthClient(api).login(args.mobile, args.password)
            print(f"Logged in as {(user or {}).get('name', args.mobile)}")
            return 0

        if args.command == "logout":
            AuthClient(api).logout()
            print("Logged out.")
            return 0

        if args.command == "status":
            user = await AuthClient(api).current_user()
            print(f"Logged in as {user.get('name', user.get('id'))}" if user else "Not logged in.")
            idle = reconciler.can_submit()
            print("No payment in progress." if idle else "A payment is waiting to be confirmed; run `resume`.")
            return 0

        if args.command == "resume":
            await reconciler.resume()
            await reconciler.join()
            return 0 if reconciler.snapshot.status.value == "success" else 1

        use_case = build_booking_use_case(api, reconciler)
        form = {
            "patient_name": args.patient_name,
            "phone": args.phone,
            "date": args.date,
            "time": args.time,
            "doctor": args.doctor,
            "hospital": args.hospital,
            "specialty": args.specialty,
            "notes": args.notes,
        }
        outcome = await use_case.execute(BookingKind(args.kind), form)
        if outcome.action != "checkout_opened":
            print(f"Booking not completed ({outcome.action}): {outcome.message}")
            for field, message in (outcome.field_errors or {}).items():
                print(f"  {field}: {message}")
            return 1

        print(f"Booking #{outcome.booking.id} created. Complete the payment in your browser.")
        await reconciler.join()
        return 0 if reconciler.snapshot.status.value == "success" else 1
    finally:
        reconciler.stop()
        await api.aclose()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        print("\nStopped polling. Run `resume` to pick the payment back up.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
