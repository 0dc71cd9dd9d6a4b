from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path
import traceback

from campsite_manager import CampsiteService, ReservationYamlRepository


def main() -> int:
    print("[INFO] Campsite Reservation Quick Check")

    today = date.today()
    with ReservationYamlRepository("data") as repo:
        service = CampsiteService(repo, today_provider=lambda: today)

        before = service.check_availability()
        print(f"[OK] Free days in the default window: {len(before)}")
        if not before:
            print("[INFO] No free days to book; nothing else to check.")
            return 0

        arrival = before[0]
        departure = arrival + timedelta(days=1)
        reservation_id = service.create_reservation_for_guest(
            "Quick",
            "Check",
            "quickcheck@example.com",
            arrival.isoformat(),
            departure.isoformat(),
        )
        print(f"[OK] Reserved {arrival.isoformat()}~{departure.isoformat()}: {reservation_id}")

        during = service.check_availability()
        print(f"[OK] Free days after booking: {len(during)} (taken: {arrival.isoformat()})")

        service.cancel_reservation(reservation_id)
        after = service.check_availability()
        print(f"[OK] Free days after cancelling: {len(after)}")

    print(f"[OK] Active YAML: {Path('data/active_reservations.yaml').resolve()}")
    print(f"[OK] Event Log YAML: {Path('data/reservation_events.yaml').resolve()}")
    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)
