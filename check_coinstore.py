from dotenv import load_dotenv

load_dotenv()

import json
import sys

from app.core.config import Settings
from app.core.logs import configure_logging
from app.exchange.coinstore.client import CoinstoreClient, CoinstoreError, CoinstoreHTTPError
from app.exchange.coinstore.signing import ConfigurationError

s = Settings()
configure_logging(s.LOG_LEVEL)

client = CoinstoreClient(
    credentials=s.credentials(),
    base_url=s.CS_BASE_URL,
    timeout=s.CS_TIMEOUT_SECONDS,
)
symbol = sys.argv[1].upper() if len(sys.argv) > 1 else s.CS_SYMBOL

try:
    # auth / base URL sanity check
    bal = client.balances()
    print("[balance ok]", json.dumps(bal)[:200] + "...")

    print(json.dumps(client.current_orders(symbol or None), indent=2))

    if symbol:
        print(json.dumps(client.latest_trades(symbol), indent=2))
except ConfigurationError as e:
    raise SystemExit(str(e))
except CoinstoreHTTPError as e:
    print(
        f"HTTP {e.status_code} on {e.path}: {e.payload}",
        {"baseUrl": s.CS_BASE_URL, "failedPath": e.path},
        file=sys.stderr,
    )
    sys.exit(1)
except CoinstoreError as e:
    print(str(e), file=sys.stderr)
    sys.exit(1)
