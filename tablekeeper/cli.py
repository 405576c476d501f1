"""Command-line interface for Tablekeeper staff - HTTP client for the dashboard API."""

import logging
import shlex
import sys

import httpx

from tablekeeper.config import get_config, setup_logging

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  list [status] [search]     List reservations (status: pending/accepted/cancelled/arrived)
  tables                     List tables
  assign <reservation> <table_id>
  confirm <reservation>
  cancel <reservation>
  arrive <reservation>
  help
  quit"""


class TablekeeperCLI:
    """Interactive staff client for the Tablekeeper server."""

    def __init__(self) -> None:
        """Initialize the CLI."""
        self.config = get_config()
        setup_logging(self.config)
        self.client = httpx.Client(
            base_url=self.config.server_url,
            headers={"Authorization": f"Bearer {self.config.cli_token}"},
            timeout=30.0,
        )
        logger.info("Tablekeeper CLI initialized as HTTP client")
        self._display_banner()

    def _display_banner(self) -> None:
        print("\n" + "=" * 60)
        print(f"TABLEKEEPER - {self.config.restaurant_name} staff console")
        print(f"server: {self.config.server_url}")
        print("=" * 60 + "\n")

    def run(self) -> None:
        """Run the CLI loop."""
        print(HELP_TEXT)

        while True:
            try:
                line = input("\ntablekeeper> ").strip()
                if not line:
                    continue

                command, *args = shlex.split(line)
                command = command.lower()
                if command in ["quit", "exit", "q"]:
                    print("\nGoodbye!")
                    break

                self.dispatch(command, args)

            except KeyboardInterrupt:
                print("\n\nExiting Tablekeeper. Goodbye!")
                break
            except ValueError as e:
                print(f"\n⚠ {e}")
            except httpx.ConnectError:
                logger.exception("Cannot connect to server")
                print(f"\n⚠ Cannot connect to server at {self.config.server_url}")
                print("Make sure the server is running:")
                print("  tablekeeper-server")
            except httpx.HTTPError as e:
                logger.error(f"HTTP error: {e}", exc_info=True)
                print(f"\n⚠ Request failed: {e}")

        self.client.close()

    def dispatch(self, command: str, args: list[str]) -> None:
        """Execute one command.

        Raises:
            ValueError: On unknown commands or missing arguments
        """
        if command == "help":
            print(HELP_TEXT)
        elif command == "list":
            self.list_reservations(*args[:2])
        elif command == "tables":
            self.list_tables()
        elif command == "assign":
            if len(args) != 2:
                msg = "Usage: assign <reservation> <table_id>"
                raise ValueError(msg)
            self.assign_table(args[0], int(args[1]))
        elif command in ("confirm", "cancel", "arrive"):
            if len(args) != 1:
                msg = f"Usage: {command} <reservation>"
                raise ValueError(msg)
            self.change_status(command, args[0])
        else:
            msg = f"Unknown command '{command}'. Type 'help' for the list."
            raise ValueError(msg)

    # ---------- Requests ----------

    def _handle(self, response: httpx.Response) -> dict | list | None:
        if response.status_code == 200:
            return response.json()

        error_data = (
            response.json()
            if response.headers.get("content-type", "").startswith("application/json")
            else {}
        )
        error_msg = error_data.get("error", response.text)
        print(f"\n⚠ Server error (status {response.status_code}): {error_msg}")
        return None

    def list_reservations(self, status: str | None = None, search: str | None = None) -> None:
        params = {}
        if status and status != "all":
            params["status"] = status
        if search:
            params["search"] = search

        reservations = self._handle(self.client.get("/api/dashboard/reservations", params=params))
        if reservations is None:
            return
        if not reservations:
            print("\nNo reservations found.")
            return

        print()
        for r in reservations:
            table = r["table_id"] if r["table_id"] is not None else "-"
            name = f"{r['first_name']} {r['last_name']}".strip()
            print(
                f"{r['id'][:8]}  {r['date']} {r['time']}  {name:<24} "
                f"{r['guests']:>2} guests  table {table:<4} {r['status']}"
            )

    def list_tables(self) -> None:
        tables = self._handle(self.client.get("/api/dashboard/tables"))
        if tables is None:
            return

        print()
        for t in tables:
            print(f"#{t['id']:<4} table {t['number']:<4} {t['capacity']:>2} seats  {t['status']}")

    def _resolve_id(self, prefix: str) -> str | None:
        """Expand a short reservation id as printed by ``list``."""
        reservations = self._handle(self.client.get("/api/dashboard/reservations"))
        if reservations is None:
            return None
        matches = [r["id"] for r in reservations if r["id"].startswith(prefix)]
        if len(matches) != 1:
            print(f"\n⚠ '{prefix}' matches {len(matches)} reservations")
            return None
        return matches[0]

    def assign_table(self, reservation: str, table_id: int) -> None:
        reservation_id = self._resolve_id(reservation)
        if reservation_id is None:
            return

        result = self._handle(
            self.client.post(
                f"/api/dashboard/reservations/{reservation_id}/assign-table",
                json={"table_id": table_id},
            )
        )
        if result is not None:
            print(f"\n✓ Table {table_id} assigned")

    def change_status(self, action: str, reservation: str) -> None:
        reservation_id = self._resolve_id(reservation)
        if reservation_id is None:
            return

        result = self._handle(
            self.client.post(f"/api/dashboard/reservations/{reservation_id}/{action}")
        )
        if result is None:
            return

        print(f"\n✓ Reservation is now {result['reservation']['status']}")
        if result.get("warning"):
            print(f"⚠ {result['warning']}")


def main() -> None:
    """Main entry point for the CLI."""
    try:
        config = get_config()
    except Exception as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    if not config.cli_token:
        print("CLI_TOKEN is not set.")
        print("Sign in through the staff app and put the session token in your .env:")
        print("  CLI_TOKEN=your_session_token")
        sys.exit(1)

    cli = TablekeeperCLI()
    cli.run()


if __name__ == "__main__":
    main()
