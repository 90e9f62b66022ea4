#!/usr/bin/env python3
"""Script to run, inspect and cancel predictions from the command line.

Examples
- python -m scripts.run_prediction run owner/model:abc123 -i prompt="a cat" -i steps=20
- python -m scripts.run_prediction status owner/model:abc123 --id 4f1c...
- python -m scripts.run_prediction cancel owner/model:abc123 --id 4f1c...
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

import structlog

from prediction_client.client import PredictionClient
from prediction_client.common.config import ClientSettings
from prediction_client.common.logging import configure_logging
from prediction_client.errors import PredictionClientError
from prediction_client.models import ModelIdentifier, Prediction, PredictionStatus

logger = structlog.get_logger("run_prediction")


def parse_inputs(pairs: Optional[List[str]]) -> Dict[str, Any]:
    """Turn ``key=value`` pairs into an inputs mapping.

    Values are decoded as JSON when possible (numbers, booleans, lists),
    otherwise kept as plain strings.
    """
    inputs: Dict[str, Any] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Input {pair!r} is not of the form key=value")
        key, value = pair.split("=", 1)
        try:
            inputs[key] = json.loads(value)
        except json.JSONDecodeError:
            inputs[key] = value
    return inputs


def existing_prediction(model_identifier: str, prediction_id: str) -> Prediction:
    """Reference a prediction created earlier, by model and id."""
    model = ModelIdentifier.parse(model_identifier)
    return Prediction(
        id=prediction_id,
        model_path=model.path,
        model_version=model.version,
        status=PredictionStatus.STARTING.value,
    )


async def execute(args: argparse.Namespace, client: PredictionClient) -> Any:
    """Run the selected subcommand and return a JSON-serializable result."""
    if args.command == "run":
        return await client.run(args.model, parse_inputs(args.input))

    prediction = existing_prediction(args.model, args.id)
    if args.command == "get":
        return (await client.get(prediction)).to_dict()
    if args.command == "status":
        return await client.check_status(prediction)
    if args.command == "cancel":
        return (await client.cancel_prediction(prediction)).to_dict()
    raise ValueError(f"Unknown command: {args.command}")


async def run_command(args: argparse.Namespace, settings: ClientSettings) -> Any:
    async with PredictionClient(settings.to_client_config()) as client:
        return await execute(args, client)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run and manage remote predictions")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Create a prediction and wait for its output")
    run_parser.add_argument("model", help="Model identifier, <path>:<version>")
    run_parser.add_argument(
        "-i", "--input",
        action="append",
        metavar="KEY=VALUE",
        help="Model input; repeat for several inputs"
    )

    for name, help_text in (
        ("get", "Show the current state of a prediction"),
        ("status", "Print the status of a prediction"),
        ("cancel", "Cancel a running prediction"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("model", help="Model identifier, <path>:<version>")
        sub.add_argument("--id", required=True, help="Prediction id")

    return parser


def main(argv: Optional[List[str]] = None):
    """Main function for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = ClientSettings()
    configure_logging("run_prediction", settings.log_level, settings.log_format)

    try:
        result = asyncio.run(run_command(args, settings))
    except (PredictionClientError, ValueError) as e:
        logger.error("Command failed", command=args.command, model=args.model, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, indent=2, default=str))
    sys.exit(0)


if __name__ == "__main__":
    main()
