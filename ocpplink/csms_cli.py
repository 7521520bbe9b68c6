"""
CSMS command line interface for real-time OCPP operations.
This runs within the CSMS process and sends requests to connected charging stations.
"""

import asyncio
import random
import sys

import pydantic
from loguru import logger

from ocpplink.errors import OcppError
from ocpplink.models import availability, provisioning, remote_control
from ocpplink.models.types import EVSE, IdToken, IdTokenType
from ocpplink.validation import first_error


class CSMSCommandLine:
    """Interactive command-line interface for CSMS operations."""

    def __init__(self, csms, handler=None):
        self.csms = csms
        self.handler = handler
        self.running = False
        self.commands = {
            "help": self._show_help,
            "list": self._list_stations,
            "status": self._show_status,
            "start": self._remote_start,
            "stop": self._remote_stop,
            "reset": self._reset,
            "availability": self._change_availability,
            "trigger": self._trigger_message,
            "validate": self._validate_token,
        }

    async def start(self):
        """Start the CLI interface."""
        self.running = True
        print("\n" + "=" * 60)
        print("🎯 OCPP 2.0.1 CSMS Command Interface")
        print("=" * 60)
        await self._show_help([])

        while self.running:
            prompt = f"CSMS ({len(self.csms.connected_peers())} stations connected) > "
            command = await self._get_input(prompt)
            if command == "":
                # stdin closed
                self.running = False
                break
            await self.process_command(command.strip())

    async def _get_input(self, prompt):
        """Get user input without blocking the event loop."""
        print(prompt, end="", flush=True)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, sys.stdin.readline)

    async def process_command(self, command: str):
        """Run a single CLI command."""
        if not command:
            return
        cmd, *args = command.split()
        cmd = cmd.lower()

        if cmd in ("quit", "exit"):
            self.running = False
            print("👋 Goodbye!")
            return
        action = self.commands.get(cmd)
        if action is None:
            print(f"❌ Unknown command: {cmd}")
            print("Type 'help' for available commands")
            return
        try:
            await action(args)
        except pydantic.ValidationError as e:
            print(f"❌ Invalid request: {first_error(e).description}")

    async def _show_help(self, args):
        print("\n📋 CSMS Commands:")
        print("-" * 60)
        print("list                                 - List connected charging stations")
        print("status                               - Show known stations and transactions")
        print("start CS001 VALID001 [evse]          - RequestStartTransaction")
        print("stop CS001 <transaction_id>          - RequestStopTransaction")
        print("reset CS001 [Immediate|OnIdle]       - Reset a charging station")
        print("availability CS001 <Operative|Inoperative> [evse]")
        print("                                     - ChangeAvailability")
        print("trigger CS001 <message>              - TriggerMessage, e.g. Heartbeat")
        print("validate VALID001                    - Check an ID token locally")
        print("help                                 - Show this help")
        print("quit                                 - Exit CLI")
        print()

    async def _list_stations(self, args):
        print("\n🔌 Connected Charging Stations:")
        print("-" * 35)
        stations = self.csms.connected_peers()
        if stations:
            for station_id in stations:
                print(f"  🟢 {station_id}")
        else:
            print("  No charging stations currently connected")
        print()

    async def _show_status(self, args):
        print("\n📊 System Status:")
        print("-" * 30)
        if self.handler is None:
            print(f"Connected: {len(self.csms.connected_peers())}")
            print()
            return
        print(f"Known charging stations: {len(self.handler.stations)}")
        for record in self.handler.stations.values():
            icon = "🟢" if record.online else "🔴"
            print(f"  {icon} {record.station_id}: {record.vendor or '?'} {record.model or '?'}")
            for (evse_id, connector_id), status in sorted(record.connectors.items()):
                print(f"     EVSE {evse_id} connector {connector_id}: {status.value}")
            if record.last_seen:
                print(f"     Last seen: {record.last_seen.isoformat()}")
        active = self.handler.active_transactions()
        print(f"Active transactions: {len(active)}")
        for record in active:
            print(f"  ⚡ {record.transaction_id} on {record.station_id} (idToken {record.id_token})")
        print()

    async def _send(self, station_id, request):
        """Send a request, printing the outcome. Returns the response or None."""
        try:
            response = await self.csms.call(station_id, request)
        except OcppError as e:
            print(f"   ❌ Failed: {e.code.value} - {e.description}")
            logger.error(f"CLI request to {station_id} failed: {e}")
            return None
        status = getattr(response, "status", None)
        print(f"   ✅ Response: {status.value if status is not None else response}")
        return response

    async def _remote_start(self, args):
        if len(args) < 2:
            print("❌ Usage: start <station_id> <id_token> [evse_id]")
            return
        station_id, token = args[0], args[1]
        try:
            evse_id = int(args[2]) if len(args) > 2 else None
        except ValueError:
            print("❌ EVSE ID must be a number")
            return

        print("\n🔋 Sending RequestStartTransaction:")
        print(f"   Charging Station: {station_id}")
        print(f"   ID Token: {token}")
        print(f"   EVSE: {evse_id if evse_id else 'Any'}")
        request = remote_control.RequestStartTransactionRequest(
            evse_id=evse_id,
            remote_start_id=random.randint(1, 999999),
            id_token=IdToken(id_token=token, type=IdTokenType.CENTRAL),
        )
        response = await self._send(station_id, request)
        if response is not None and response.transaction_id:
            print(f"   📊 Transaction ID: {response.transaction_id}")
        print()

    async def _remote_stop(self, args):
        if len(args) < 2:
            print("❌ Usage: stop <station_id> <transaction_id>")
            return
        station_id, transaction_id = args[0], args[1]
        print("\n🛑 Sending RequestStopTransaction:")
        print(f"   Charging Station: {station_id}")
        print(f"   Transaction ID: {transaction_id}")
        await self._send(station_id, remote_control.RequestStopTransactionRequest(transaction_id=transaction_id))
        print()

    async def _reset(self, args):
        if len(args) < 1:
            print("❌ Usage: reset <station_id> [Immediate|OnIdle]")
            return
        try:
            reset_type = provisioning.ResetType(args[1]) if len(args) > 1 else provisioning.ResetType.ON_IDLE
        except ValueError:
            print("❌ Reset type must be Immediate or OnIdle")
            return
        print(f"\n🔄 Sending Reset ({reset_type.value}) to {args[0]}")
        await self._send(args[0], provisioning.ResetRequest(type=reset_type))
        print()

    async def _change_availability(self, args):
        if len(args) < 2:
            print("❌ Usage: availability <station_id> <Operative|Inoperative> [evse_id]")
            return
        try:
            status = availability.OperationalStatus(args[1])
            evse = EVSE(id=int(args[2])) if len(args) > 2 else None
        except ValueError:
            print("❌ Status must be Operative or Inoperative, EVSE ID a number")
            return
        print(f"\n🔧 Sending ChangeAvailability ({status.value}) to {args[0]}")
        await self._send(args[0], availability.ChangeAvailabilityRequest(operational_status=status, evse=evse))
        print()

    async def _trigger_message(self, args):
        if len(args) < 2:
            print("❌ Usage: trigger <station_id> <message>")
            return
        try:
            message = remote_control.MessageTrigger(args[1])
        except ValueError:
            print(f"❌ Unknown message {args[1]}, expected one of: "
                  f"{', '.join(m.value for m in remote_control.MessageTrigger)}")
            return
        print(f"\n📨 Sending TriggerMessage ({message.value}) to {args[0]}")
        await self._send(args[0], remote_control.TriggerMessageRequest(requested_message=message))
        print()

    async def _validate_token(self, args):
        if len(args) < 1:
            print("❌ Usage: validate <id_token>")
            return
        if self.handler is None:
            print("❌ No token table available")
            return
        info = self.handler.id_token_info(args[0])
        icon = "✅" if info.status.value == "Accepted" else "❌"
        print(f"\n🏷️  Validating ID Token: {args[0]}")
        print(f"   {icon} Status: {info.status.value}")
        if info.cache_expiry_date_time:
            print(f"   📅 Expires: {info.cache_expiry_date_time}")
        if info.group_id_token:
            print(f"   👨‍👩‍👧‍👦 Group Token: {info.group_id_token.id_token}")
        print()
