"""
atSpoke Orchestrator — Pipeline coordination for atSpoke data collection.

This module ties the other modules (AtSpokeClient, the collection steps,
ApplicationBuilder, VezaClient, OutputManager) into one sequential run:

  Step 1: VALIDATE INVOCATION
      Checks the API key is configured, then calls whoami once. A bad key
      stops the run before any sweep starts.

  Step 2: COLLECT
      Runs the collection steps from core/steps.py in dependency order:
      account, users, teams, webhooks, requests, request types. Requests and
      request types only run when NUM_REQUESTS > 0.

  Step 3: BUILD OAA APPLICATION
      ApplicationBuilder reshapes the collected graph into a Veza OAA
      CustomApplication.

  Step 4: SAVE OUTPUT
      Writes graph_payload.json (and oaa_payload.json when SAVE_JSON) into a
      timestamped output directory.

  Step 5: PUSH TO VEZA (only when DRY_RUN=false)

Any failure aborts the run: nothing is saved or pushed from a partial
collection. The error is recorded in the results dict and in
extraction_results.json.

Configuration:
    Loaded from environment variables (typically via .env file).
    Required: ATSPOKE_API_KEY. Required for push: VEZA_URL, VEZA_API_KEY.
    See config/settings.py for defaults.

Typical usage:
    orchestrator = AtSpokeOrchestrator(env_file="./.env")
    if orchestrator.validate_config():
        results = orchestrator.run()
        orchestrator.print_summary(results)
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from config import DEFAULT_SETTINGS, IntegrationConfig, parse_record_limit

from .application_builder import ApplicationBuilder
from .atspoke_client import create_api_client
from .entity_mapper import (
    REQUEST_ENTITY_TYPE,
    REQUEST_TYPE_ENTITY_TYPE,
    TEAM_ENTITY_TYPE,
    USER_ENTITY_TYPE,
    WEBHOOK_ENTITY_TYPE,
)
from .errors import ConfigurationError
from .graph import DATA_ACCOUNT_ENTITY, JobState
from .output_manager import OutputManager
from .steps import StepExecutionContext, execute_steps
from .validation import validate_integration_config, validate_invocation
from .veza_client import VezaClient


def _env_flag(name: str) -> bool:
    return os.getenv(name, str(DEFAULT_SETTINGS[name])).lower() == "true"


def _print_header(title: str):
    print(f"\n{'='*60}")
    print(title)
    print("="*60)


class AtSpokeOrchestrator:
    """Orchestrates the atSpoke collection pipeline.

    Attributes:
        api_key: atSpoke API key.
        num_requests: Record cap for the requests/request types sweeps.
        request_timeout: Per-request HTTP timeout in seconds.
        veza_url / veza_api_key: Veza credentials (needed only for push).
        provider_name / provider_prefix: Veza provider naming.
        dry_run: When True, nothing is pushed (default: True).
        save_json: Whether to write the OAA payload to disk (default: True).
        debug: Whether to print tracebacks on failure (default: False).
        output_manager: Handles timestamped output directories and retention cleanup.
    """

    def __init__(self, env_file: str = "./.env"):
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            print(f"Loaded configuration from: {env_file}")
        else:
            print(f"Warning: {env_file} not found, using defaults/environment")

        # atSpoke connection (required)
        self.api_key = os.getenv("ATSPOKE_API_KEY", "")
        self.num_requests = parse_record_limit(
            os.getenv("NUM_REQUESTS", str(DEFAULT_SETTINGS["NUM_REQUESTS"]))
        )
        self.request_timeout = int(
            os.getenv("REQUEST_TIMEOUT", str(DEFAULT_SETTINGS["REQUEST_TIMEOUT"]))
        )

        # Veza (required only for push)
        self.veza_url = os.getenv("VEZA_URL", "")
        self.veza_api_key = os.getenv("VEZA_API_KEY", "")
        self.provider_name = os.getenv("PROVIDER_NAME", DEFAULT_SETTINGS["PROVIDER_NAME"])
        self.provider_prefix = os.getenv("PROVIDER_PREFIX", DEFAULT_SETTINGS["PROVIDER_PREFIX"])

        output_dir = os.getenv("OUTPUT_DIR", DEFAULT_SETTINGS["OUTPUT_DIR"])
        retention_days = int(
            os.getenv("OUTPUT_RETENTION_DAYS", str(DEFAULT_SETTINGS["OUTPUT_RETENTION_DAYS"]))
        )

        self.dry_run = _env_flag("DRY_RUN")
        self.save_json = _env_flag("SAVE_JSON")
        self.debug = _env_flag("DEBUG")

        self.output_manager = OutputManager(output_dir, self.provider_name, retention_days)
        self.veza_client = VezaClient(self.veza_url, self.veza_api_key)

    @property
    def integration_config(self) -> IntegrationConfig:
        return IntegrationConfig(
            api_key=self.api_key,
            num_requests=self.num_requests,
            request_timeout=self.request_timeout,
        )

    def validate_config(self) -> bool:
        """Check required configuration without touching the network.

        Returns:
            True if everything required is present. Prints each problem
            otherwise.
        """
        errors = []
        try:
            validate_integration_config(self.integration_config)
        except ConfigurationError as e:
            errors.append(f"ATSPOKE_API_KEY is required ({e})")
        if not self.dry_run:
            if not self.veza_url:
                errors.append("VEZA_URL is required when DRY_RUN=false")
            if not self.veza_api_key:
                errors.append("VEZA_API_KEY is required when DRY_RUN=false")

        if errors:
            print("\nConfiguration Errors:")
            for err in errors:
                print(f"  - {err}")
            return False
        return True

    def run(self, job_state: Optional[JobState] = None) -> Dict[str, Any]:
        """Execute the full pipeline.

        Returns:
            A dict containing:
                - started_at/completed_at: ISO timestamps
                - connector: "atspoke"
                - config: num_requests and dry_run
                - success: True if every step completed without error
                - summary: Entity and relationship counts
                - graph_path / json_path: Paths of saved payloads
                - provider_name / veza_response: Set after a push
                - error / error_type: Set when success=False
        """
        results: Dict[str, Any] = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "connector": "atspoke",
            "config": {
                "num_requests": self.num_requests,
                "dry_run": self.dry_run,
            },
            "success": False,
        }
        job_state = job_state or JobState()
        config = self.integration_config

        try:
            _print_header("STEP 1: VALIDATE INVOCATION")
            client = create_api_client(config)
            validate_invocation(config, client)
            print("  Authentication successful")

            _print_header("STEP 2: COLLECT")
            context = StepExecutionContext(config=config, client=client, job_state=job_state)
            executed = execute_steps(
                context,
                on_step_start=lambda position, step: print(f"  [{position}] {step.name}"),
            )
            results["steps"] = executed
            print(f"  Entities: {len(job_state.collected_entities)}")
            print(f"  Relationships: {len(job_state.collected_relationships)}")

            _print_header("STEP 3: BUILD OAA APPLICATION")
            app = ApplicationBuilder().build(job_state)
            print(f"  Application built: {app.name}")

            _print_header("STEP 4: SAVE OUTPUT")
            self.output_manager.create_timestamped_dir()
            graph_path = self.output_manager.write_json("graph_payload.json", job_state.get_payload())
            results["graph_path"] = str(graph_path)
            print(f"  Saved graph payload: {graph_path}")
            if self.save_json:
                json_path = self.output_manager.write_json("oaa_payload.json", app.get_payload())
                results["json_path"] = str(json_path)
                print(f"  Saved OAA payload: {json_path}")

            if not self.dry_run:
                _print_header("STEP 5: PUSH TO VEZA")
                provider_name = VezaClient.generate_provider_name(
                    self.provider_name, self.provider_prefix
                )
                account = job_state.get_data(DATA_ACCOUNT_ENTITY)
                results["veza_response"] = self.veza_client.push_application(
                    app, provider_name, account["name"],
                )
                results["provider_name"] = provider_name
                print(f"  Pushed to Veza as: {provider_name}")

            results["success"] = True
            results["summary"] = self._summarize(job_state)

        except Exception as e:
            results["error"] = str(e)
            results["error_type"] = type(e).__name__
            print(f"\n  ERROR: {e}")
            if self.debug:
                traceback.print_exc()

        results["completed_at"] = datetime.now(timezone.utc).isoformat()

        if self.output_manager.current_dir:
            results_path = self.output_manager.write_json("extraction_results.json", results)
            print(f"\n  Results saved to: {results_path}")

        return results

    @staticmethod
    def _summarize(job_state: JobState) -> Dict[str, Any]:
        account = job_state.get_data(DATA_ACCOUNT_ENTITY) or {}
        return {
            "account": account.get("name", ""),
            "users": len(job_state.entities_of_type(USER_ENTITY_TYPE)),
            "teams": len(job_state.entities_of_type(TEAM_ENTITY_TYPE)),
            "webhooks": len(job_state.entities_of_type(WEBHOOK_ENTITY_TYPE)),
            "requests": len(job_state.entities_of_type(REQUEST_ENTITY_TYPE)),
            "request_types": len(job_state.entities_of_type(REQUEST_TYPE_ENTITY_TYPE)),
            "relationships": len(job_state.collected_relationships),
        }

    def print_summary(self, results: Dict):
        _print_header("EXTRACTION COMPLETE")
        print(f"Status: {'SUCCESS' if results.get('success') else 'FAILED'}")
        print(f"Mode: {'DRY RUN' if self.dry_run else 'LIVE PUSH'}")

        summary = results.get("summary", {})
        if summary:
            print(f"Account: {summary.get('account', 'N/A')}")
            print(f"Users: {summary.get('users', 0)}")
            print(f"Teams: {summary.get('teams', 0)}")
            print(f"Webhooks: {summary.get('webhooks', 0)}")
            print(f"Requests: {summary.get('requests', 0)}")
            print(f"Request Types: {summary.get('request_types', 0)}")
            print(f"Relationships: {summary.get('relationships', 0)}")

        if results.get("error"):
            print(f"Error: {results['error']}")

        if self.dry_run and results.get("success"):
            print("\nNEXT STEPS:")
            print("  You are in DRY RUN mode - no data was pushed to Veza.")
            print("  When ready: python run.py --push")
