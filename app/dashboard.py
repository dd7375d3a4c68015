"""Terminal admin dashboard.

Logs in with the admin credentials, fetches every appointment, shows the
aggregate counts and the cards for the selected status, and re-fetches on a
fixed interval. Confirm and delete actions always trigger a full reload.

Usage:
    consult-dashboard --base-url http://localhost:3000
    consult-dashboard --once --filter pending
"""
import argparse
import asyncio
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

REFRESH_INTERVAL_SECONDS = 30
FILTERS = ("all", "pending", "confirmed")


class DashboardError(Exception):
    """An API call failed; the message is the server's error text."""


@dataclass(frozen=True)
class DashboardStats:
    total: int
    pending: int
    confirmed: int
    today: int


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def compute_stats(appointments: list[dict], today: date) -> DashboardStats:
    return DashboardStats(
        total=len(appointments),
        pending=sum(1 for a in appointments if a.get("status") == "pending"),
        confirmed=sum(1 for a in appointments if a.get("status") == "confirmed"),
        today=sum(1 for a in appointments if _parse_date(a.get("appointmentDate")) == today),
    )


def filter_appointments(appointments: list[dict], status: str) -> list[dict]:
    if status not in FILTERS:
        raise ValueError(f"Unknown filter {status!r}, expected one of {', '.join(FILTERS)}")
    if status == "all":
        return list(appointments)
    return [a for a in appointments if a.get("status") == status]


def render_card(appointment: dict) -> str:
    created = appointment.get("createdAt", "")[:10]
    lines = [
        f"[{appointment.get('status', '?')}] {appointment.get('name')}  (id {appointment.get('id')})",
        f"  {appointment.get('email')} | {appointment.get('phone')} | booked {created}",
        f"  Country: {appointment.get('preferredCountry')}  Service: {appointment.get('consultationType')}",
    ]
    if appointment.get("message"):
        lines.append(f"  Message: {appointment['message']}")
    if appointment.get("status") == "confirmed" and appointment.get("appointmentDate"):
        lines.append(f"  Confirmed for {appointment['appointmentDate']} at {appointment.get('appointmentTime')}")
    return "\n".join(lines)


def render(appointments: list[dict], stats: DashboardStats, status: str = "all") -> str:
    header = (
        f"Total: {stats.total}  Pending: {stats.pending}  "
        f"Confirmed: {stats.confirmed}  Today: {stats.today}"
    )
    visible = filter_appointments(appointments, status)
    if not visible:
        return f"{header}\n\nNo appointments found"
    return header + "\n\n" + "\n\n".join(render_card(a) for a in visible)


def _error_text(response: httpx.Response, fallback: str) -> str:
    try:
        return response.json().get("error") or fallback
    except ValueError:
        return fallback


class DashboardClient:
    def __init__(self, http: httpx.AsyncClient, today: Callable[[], date] = date.today) -> None:
        self.http = http
        self._today = today
        self.appointments: list[dict] = []
        self.stats = DashboardStats(0, 0, 0, 0)
        self.loaded_at: datetime | None = None

    async def login(self, username: str, password: str) -> str:
        response = await self.http.post("/api/login", json={"username": username, "password": password})
        if response.status_code != 200:
            raise DashboardError(_error_text(response, "Login failed"))
        return response.json()["user"]

    async def logout(self) -> None:
        await self.http.post("/api/logout")

    async def load(self) -> list[dict]:
        response = await self.http.get("/api/appointments", headers={"Accept": "application/json"})
        if response.status_code != 200:
            raise DashboardError(_error_text(response, "Failed to load appointments"))
        self.appointments = response.json()
        self.stats = compute_stats(self.appointments, self._today())
        self.loaded_at = datetime.now()
        return self.appointments

    def visible(self, status: str = "all") -> list[dict]:
        return filter_appointments(self.appointments, status)

    async def confirm(self, appointment_id: str, appointment_date: date, appointment_time: str) -> str:
        response = await self.http.put(
            f"/api/appointments/{appointment_id}/confirm",
            json={"appointmentDate": appointment_date.isoformat(), "appointmentTime": appointment_time},
        )
        if response.status_code != 200:
            raise DashboardError(_error_text(response, "Failed to confirm appointment"))
        await self.load()
        return response.json()["message"]

    async def delete(self, appointment_id: str) -> str:
        response = await self.http.delete(f"/api/appointments/{appointment_id}")
        if response.status_code != 200:
            raise DashboardError(_error_text(response, "Failed to delete appointment"))
        await self.load()
        return response.json()["message"]

    async def run(
        self,
        on_refresh: Callable[["DashboardClient"], None],
        interval: float = REFRESH_INTERVAL_SECONDS,
        cycles: int | None = None,
    ) -> None:
        """Reload every `interval` seconds and hand the client to `on_refresh`; forever when cycles is None."""
        done = 0
        while cycles is None or done < cycles:
            try:
                await self.load()
            except (DashboardError, httpx.HTTPError) as e:
                logger.error("Error loading appointments: %s", e)
            else:
                on_refresh(self)
            done += 1
            if cycles is None or done < cycles:
                await asyncio.sleep(interval)


async def _run_cli(args: argparse.Namespace) -> int:
    async with httpx.AsyncClient(base_url=args.base_url, timeout=10.0) as http:
        client = DashboardClient(http)
        try:
            user = await client.login(args.username, args.password)
        except DashboardError as e:
            print(f"Login failed: {e}", file=sys.stderr)
            return 1
        logger.info("Logged in as %s", user)

        def show(c: DashboardClient) -> None:
            print(render(c.appointments, c.stats, args.filter))
            print()

        await client.run(show, interval=args.interval, cycles=1 if args.once else None)
        await client.logout()
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Poll the appointment admin API and print the dashboard.")
    parser.add_argument("--base-url", default=f"http://localhost:{settings.port}")
    parser.add_argument("--username", default=settings.admin_user)
    parser.add_argument("--password", default=settings.admin_pass)
    parser.add_argument("--filter", choices=FILTERS, default="all")
    parser.add_argument("--interval", type=float, default=REFRESH_INTERVAL_SECONDS)
    parser.add_argument("--once", action="store_true", help="Fetch and print once, then exit")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        sys.exit(asyncio.run(_run_cli(args)))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
