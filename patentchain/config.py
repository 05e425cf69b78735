import os
from dotenv import load_dotenv

load_dotenv()

# Administrator identity: the only caller allowed to mint assets and to
# update provenance record status.
LEDGER_ADMIN_ADDRESS = os.getenv("LEDGER_ADMIN_ADDRESS")

# --- Payout chain (optional) ---
# When both are set, license fees and revenue shares are paid out on-chain
# from the treasury wallet. Otherwise an in-memory gateway is used.
RPC_URL = os.getenv("RPC_URL")
TREASURY_PRIVATE_KEY = os.getenv("TREASURY_PRIVATE_KEY")

try:
    PAYOUT_GAS_LIMIT = int(os.getenv("PAYOUT_GAS_LIMIT", "21000"))
except ValueError:
    print("Warning: Invalid PAYOUT_GAS_LIMIT in .env file. Defaulting to 21000.")
    PAYOUT_GAS_LIMIT = 21000

try:
    PAYOUT_RECEIPT_TIMEOUT = int(os.getenv("PAYOUT_RECEIPT_TIMEOUT", "120"))
except ValueError:
    print("Warning: Invalid PAYOUT_RECEIPT_TIMEOUT in .env file. Defaulting to 120 seconds.")
    PAYOUT_RECEIPT_TIMEOUT = 120

# Expected Frontend Origin (for SIWE domain validation)
EXPECTED_FRONTEND_DOMAIN = os.getenv("EXPECTED_FRONTEND_DOMAIN", "localhost:3000")

# Comma separated list of allowed CORS origins
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# JWT Settings
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", 30))

# Basic validation
if not LEDGER_ADMIN_ADDRESS:
    print("Warning: LEDGER_ADMIN_ADDRESS not found in .env file. Minting and status updates will be rejected.")
if not JWT_SECRET_KEY:
    print("Warning: JWT_SECRET_KEY not found in .env file. Authentication will fail.")
if RPC_URL and not TREASURY_PRIVATE_KEY:
    print("Warning: RPC_URL is set but TREASURY_PRIVATE_KEY is missing. Falling back to in-memory payouts.")
