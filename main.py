import asyncio
import json
import os
from datetime import date
from pathlib import Path
from typing import List

from config.settings import load_settings
from core.errors import InvalidTransitionError, TransitionPendingError
from core.logging_setup import configure_logging
from services.api import InMemoryApi
from services.main import build_services
from store.main import Store, build_store
from utils.logger import get_logger, log_decision

SAMPLE_DATA = Path(__file__).parent / "data" / "sample_data.json"

HELP = """Commands:
  occasion <id>        open an existing occasion
  occasion new <title> create an occasion for today
  occasions            list occasions
  consumer <id>        select the consumer of the receipt
  add <product> [qty]  add a product to the receipt
  remove <product> [qty]
  receipt              show the receipt
  submit               submit the receipt as an order
  cancel               cancel the receipt
  orders               list the orders of the occasion
  order <id>           open an order
  state                show the current mode and what can happen next
  exit"""


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def handle(store: Store, words: List[str]) -> None:
    command, args = words[0].lower(), words[1:]

    if command == "occasions":
        _print_json([{"id": o["id"], "title": o["title"], "closed": o["closed"]} for o in store.getters["occasions/get_items"]])
    elif command == "occasion":
        if not store.fsm.is_state("OCCASIONS"):
            await store.attempt("occasions/start", {"start": True})
        if args[:1] == ["new"]:
            await store.attempt("occasions/get", {"title": " ".join(args[1:]), "occasion_date": date.today().isoformat()})
        elif args:
            await store.attempt("occasions/get", {"id": int(args[0])})
    elif command == "consumer" and args:
        consumer_id = int(args[0]) if args[0].isdigit() else args[0]
        await store.attempt("consumers/select", consumer_id)
    elif command in ("add", "remove") and args:
        payload = {"id": int(args[0]), "quantity": int(args[1]) if len(args) > 1 else 1}
        await store.attempt("products/select" if command == "add" else "products/decrement", payload)
    elif command == "receipt":
        _print_json({
            "receipt": store.getters["receipt/get_receipt"],
            "total_price": store.getters["receipt/get_total_price"],
            "submittable": store.getters["receipt/is_submittable"],
        })
    elif command == "submit":
        await store.attempt("receipt/submit")
    elif command == "cancel":
        await store.attempt("receipt/cancel", {"close": True})
    elif command == "orders":
        _print_json([
            {"id": o["id"], "consumer": o["consumer_name"], "total_price": o["total_price"]}
            for o in store.getters["orders/get_items"]
        ])
    elif command == "order" and args:
        await store.attempt("orders/select", int(args[0]))
    elif command == "state":
        print(f"{store.fsm.state}: {', '.join(store.fsm.allowed_transitions())}")
    else:
        print(HELP)


async def run() -> None:
    settings = load_settings()
    logger = configure_logging("tabkeeper", settings.log_level, settings.log_dir)
    cli_logger = get_logger("tabkeeper.main")

    services = build_services(settings)
    data_path = os.getenv("TABKEEPER_DATA", str(SAMPLE_DATA))
    api = InMemoryApi.from_file(data_path, clock=services.clock)
    store = build_store(api=api, services=services, settings=settings)

    services.feedback.on("add", lambda item: print(f"  [{'!' if item.is_error else '-'}] {services.l10n.render(item)}"))

    await store.init()
    await store.load()
    logger.info("Store ready in state %s", store.fsm.state)

    print("Enter a command (type 'help' for commands, 'exit' to quit):")
    while True:
        try:
            user_in = (await asyncio.to_thread(input, f"{store.fsm.state}> ")).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break
        if not user_in:
            continue
        if user_in.lower() in {"exit", "quit", "q"}:
            break

        log_decision(cli_logger, "cli", "input", "user command", {"text": user_in})
        try:
            await handle(store, user_in.split())
        except (InvalidTransitionError, TransitionPendingError) as error:
            print(f"  [!] {error}")
        except ValueError:
            print(HELP)

    print("Goodbye!")


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
