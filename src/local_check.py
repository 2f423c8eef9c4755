# local_check.py
import json
import sys
from pathlib import Path

# Ensure Python can import from src/
ROOT = Path(__file__).resolve().parent.parent
sys.path.append(str(ROOT / "src"))

from handler import configure_logging, handler  # the serverless handler


def main():
    print("=====================================")
    print("   Multichain Score — Local Check    ")
    print("=====================================\n")

    configure_logging()

    address = input("Enter wallet address (or press Enter for placeholder): ").strip()
    if not address:
        address = "0x1111111111111111111111111111111111111111"

    check_type = input("Check type [referral/subscription/registered] (Enter for referral): ").strip()

    print("\n=== Calling handler(event) ===")
    event = {
        "method": "GET",
        "headers": {},
        "query": {"address": address, "type": check_type or "referral"},
    }

    response = handler(event)
    body = json.loads(response["body"]) if response["body"] else None

    print(f"\n--- Response ({response['statusCode']}) ---")
    print(json.dumps(body, indent=2, ensure_ascii=False))

    # Save to examples/sample-response.json for schema validation
    examples_dir = ROOT / "examples"
    examples_dir.mkdir(exist_ok=True)

    output_path = examples_dir / "sample-response.json"
    output_path.write_text(json.dumps(body, indent=2, ensure_ascii=False), encoding="utf-8")

    print(f"\nResponse saved to: {output_path}")


if __name__ == "__main__":
    main()
