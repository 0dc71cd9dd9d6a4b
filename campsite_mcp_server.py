from __future__ import annotations

from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from campsite_manager import CampsiteService, ReservationError, ReservationYamlRepository
from campsite_manager.validation import BOOKING_HORIZON_MONTHS, MAX_STAY_DAYS, MIN_LEAD_DAYS

DATA_DIR = Path(__file__).parent / "data"


def create_mcp_server(service: CampsiteService) -> FastMCP:
    mcp = FastMCP(
        "Campsite Reservation MCP Server",
        instructions="Check campsite availability and manage reservations.",
        json_response=True,
    )

    @mcp.resource("campsite://rules")
    async def booking_rules() -> dict[str, int]:
        """Admission limits applied to every reservation."""
        return {
            "min_lead_days": MIN_LEAD_DAYS,
            "max_stay_days": MAX_STAY_DAYS,
            "booking_horizon_months": BOOKING_HORIZON_MONTHS,
        }

    @mcp.tool()
    def check_availability(arrival: str | None = None, departure: str | None = None) -> dict[str, Any]:
        """List free days (YYYY-MM-DD) between arrival and departure, inclusive."""
        try:
            available = service.check_availability(arrival, departure)
        except ReservationError as error:
            return {"ok": False, **error.to_dict()}
        return {"ok": True, "available_dates": [day.isoformat() for day in available]}

    @mcp.tool()
    def create_reservation(owner_id: str, arrival: str, departure: str) -> dict[str, Any]:
        """Reserve the campsite from arrival up to (not including) departure."""
        try:
            reservation_id = service.create_reservation(owner_id, arrival, departure)
        except ReservationError as error:
            return {"ok": False, **error.to_dict()}
        return {"ok": True, "reservation_id": reservation_id}

    @mcp.tool()
    def update_reservation(reservation_id: str, arrival: str, departure: str) -> dict[str, Any]:
        """Move an existing reservation to new dates."""
        try:
            updated = service.update_reservation(reservation_id, arrival, departure)
        except ReservationError as error:
            return {"ok": False, **error.to_dict()}
        return {"ok": True, "reservation": updated.to_dict()}

    @mcp.tool()
    def cancel_reservation(reservation_id: str) -> dict[str, Any]:
        """Cancel a reservation whose arrival date has not passed."""
        try:
            cancelled = service.cancel_reservation(reservation_id)
        except ReservationError as error:
            return {"ok": False, **error.to_dict()}
        return {"ok": True, "reservation": cancelled.to_dict()}

    return mcp


def main() -> None:
    with ReservationYamlRepository(DATA_DIR) as repository:
        create_mcp_server(CampsiteService(repository)).run()


if __name__ == "__main__":
    main()
