import asyncio
import sys
import os

# Ensure qrpark is in path
sys.path.append(os.getcwd())

from qrpark.database import AsyncSessionLocal, init_db
from qrpark.errors import ParkingError
from qrpark.services.locks import UserLocks
from qrpark.services.session_service import SessionService
from qrpark.services.store import SqlRecordStore
from qrpark.utils.logging import setup_logging
from qrpark.utils.validators import validate_phone

async def simulate_gate():
    print("--- Parking Gate Simulator ---")
    print("Type the phone number read from a user's QR code. Type 'quit' to exit.")

    setup_logging()
    await init_db()
    locks = UserLocks()

    async with AsyncSessionLocal() as db:
        service = SessionService(SqlRecordStore(db), locks)

        while True:
            scanned = input("Scan: ")
            if scanned.lower() in ['quit', 'exit']:
                break

            try:
                result = await service.process_scan(validate_phone(scanned))
            except (ParkingError, ValueError) as e:
                print(f"Rejected: {e}")
                continue

            if result.action == "entry":
                print(f"ENTRY  session {result.session.id} at {result.session.location}")
            else:
                closure = result.closure
                print(f"EXIT   {closure.minutes_used} min, cost {closure.total_cost}, balance left {closure.new_balance}")
                if closure.insufficient_balance:
                    print(f"WARNING: {closure.overstay_minutes} min were not covered by the balance")

if __name__ == "__main__":
    try:
        asyncio.run(simulate_gate())
    except KeyboardInterrupt:
        print("\nExiting simulator.")
