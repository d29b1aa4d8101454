"""
Azure Governance Engine — Main Orchestrator

Usage:
    python -m azure_governance_engine scan                               # AZURE_* env credentials
    python -m azure_governance_engine scan --config config.json          # JSON config file
    python -m azure_governance_engine scan --subscription <id> --skip-sql
    python -m azure_governance_engine analyze --input exported_scan.json # offline scoring
    python -m azure_governance_engine --l1-only analyze --input exported_scan.json

This tool is STRICTLY READ-ONLY. It will NEVER modify Azure resources.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from . import __version__
from .analyzers import ALL_ANALYZERS
from .arm.client import ArmClient
from .auth.authenticator import AuthenticationError, Authenticator
from .collectors import ALL_COLLECTORS, CollectorResult, SubscriptionCollector
from .config import REPORT_FORMATS, AuthConfig, CertificateAuth, ConfigError, EngineConfig
from .inputs import load_offline_input
from .network import RiskFinding, analyze_rules
from .reporting import export_csv, export_html, export_json, export_markdown
from .safety.guardian import SafetyGuardian
from .scoring import ComplianceScore, ControlResult, calculate_compliance_score

logger = logging.getLogger("azure_governance_engine")

COLLECTOR_SWITCHES = {
    "network": "enable_network",
    "storage": "enable_storage",
    "sql": "enable_sql",
    "app_service": "enable_app_service",
    "compute": "enable_compute",
}


def _report_formats(value: str) -> list[str]:
    formats = [f.strip().lower() for f in value.split(",") if f.strip()]
    unknown = [f for f in formats if f not in REPORT_FORMATS]
    if unknown or not formats:
        raise argparse.ArgumentTypeError(
            f"invalid format(s) {', '.join(unknown) or value!r} (choose from {', '.join(REPORT_FORMATS)})"
        )
    return formats


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="azure_governance_engine",
        description="Azure Governance Engine — CIS compliance scoring and NSG exposure (READ-ONLY)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Path to JSON configuration file",
    )
    parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=None,
        help="Output directory for reports (default: ./azure_governance_scan_<timestamp>)",
    )
    parser.add_argument(
        "--formats",
        type=_report_formats,
        default=None,
        help=f"Comma-separated output formats: {','.join(REPORT_FORMATS)} (default: all)",
    )
    parser.add_argument(
        "--l1-only",
        action="store_true",
        help="Score CIS Level 1 controls only (Level 2 results are excluded entirely)",
    )
    parser.add_argument(
        "--scope-name",
        type=str,
        default=None,
        help="Display name for the audited scope in reports",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # --- scan: live collection from ARM ---
    scan_p = subparsers.add_parser("scan", help="Collect from Azure Resource Manager and analyze")
    scan_p.add_argument("--tenant-id", help="Entra tenant ID (overrides config / AZURE_TENANT_ID)")
    scan_p.add_argument("--client-id", help="Service principal client ID (overrides config / AZURE_CLIENT_ID)")
    scan_p.add_argument("--cert-path", type=Path, help="Base64-encoded PFX; switches to certificate auth")
    scan_p.add_argument(
        "--subscription", "-s",
        action="append",
        default=[],
        help="Subscription ID to include (repeatable; default: all enabled)",
    )
    for name in COLLECTOR_SWITCHES:
        scan_p.add_argument(
            f"--skip-{name.replace('_', '-')}",
            action="store_true",
            help=f"Skip {name.replace('_', ' ')} collection and analysis",
        )

    # --- analyze: offline input ---
    an_p = subparsers.add_parser("analyze", help="Score and classify an exported JSON input file")
    an_p.add_argument("--input", "-i", type=Path, required=True, help="JSON file with findings / security_rules")

    args = parser.parse_args(argv)
    if not args.command:
        parser.error("a command is required: scan or analyze")
    return args


def configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_config(args: argparse.Namespace) -> EngineConfig:
    """Build engine configuration from config file, environment and CLI flags."""
    config = EngineConfig.from_file(args.config) if args.config else EngineConfig()
    if not config.auth.tenant_id and not config.auth.client_id:
        config.auth = AuthConfig.from_env()

    if args.l1_only:
        config.scoring.include_level2 = False
    if args.formats:
        config.output.formats = list(args.formats)
    if args.output_dir:
        config.output.base_dir = str(args.output_dir)
    config.verbose = config.verbose or args.verbose

    if args.command == "scan":
        if args.tenant_id:
            config.auth.tenant_id = args.tenant_id
        if args.client_id:
            config.auth.client_id = args.client_id
        if args.cert_path:
            config.auth.mode = "certificate"
            config.auth.certificate = CertificateAuth(certificate_path=str(args.cert_path))
        if args.subscription:
            config.collection.subscriptions = list(args.subscription)
        for name, switch in COLLECTOR_SWITCHES.items():
            if getattr(args, f"skip_{name}", False):
                setattr(config.collection, switch, False)

    return config


async def run_collection(arm: ArmClient, config: EngineConfig) -> dict[str, CollectorResult]:
    """
    Enumerate subscriptions, then run all enabled resource collectors concurrently.

    Returns:
        Dict mapping collector name to CollectorResult.
    """
    sub_result = await SubscriptionCollector(arm, config.collection, []).execute()
    subscriptions = sub_result.data.get("subscriptions", [])
    results = {sub_result.collector_name: sub_result}
    for w in sub_result.metadata.get("warnings", []):
        print(f"      ⚠  {w}")
    if not subscriptions:
        print("  ❌ No subscriptions in scope.")
        return results
    print(f"  ✅ {len(subscriptions)} subscriptions in scope")

    collectors = []
    for cls in ALL_COLLECTORS:
        if not getattr(config.collection, COLLECTOR_SWITCHES.get(cls.name, ""), True):
            print(f"  ⏭  Skipping {cls.__name__} (disabled)")
            continue
        collectors.append(cls(arm, config.collection, subscriptions))

    print(f"\n  Running {len(collectors)} collectors concurrently...\n")
    completed = await asyncio.gather(*(c.execute() for c in collectors), return_exceptions=True)

    for collector, result in zip(collectors, completed):
        display_name = collector.__class__.__name__
        if isinstance(result, BaseException):
            print(f"  ❌ {display_name}: FAILED — {result}")
            continue
        print(f"  ✅ {display_name}: {result.metadata['items_collected']} items "
              f"({result.metadata.get('duration_seconds', '?')}s)")
        for w in result.metadata.get("warnings", []):
            print(f"      ⚠  {w}")
        results[collector.name] = result

    return results


def run_analysis(collector_results: dict[str, Any]) -> tuple[list[ControlResult], list[RiskFinding]]:
    """Run all analyzers against collected data and return merged control results and NSG risks."""
    merged_data = {
        name: {**result.data, "_metadata": result.metadata}
        for name, result in collector_results.items()
    }

    control_results: list[ControlResult] = []
    risk_findings: list[RiskFinding] = []

    for cls in ALL_ANALYZERS:
        analyzer = cls()
        results = analyzer.analyze(merged_data)
        control_results.extend(results)
        risk_findings.extend(analyzer.risk_findings)

        status_counts: dict[str, int] = {}
        for r in results:
            status_counts[r.status] = status_counts.get(r.status, 0) + 1
        print(f"  ✅ {cls.__name__}: {len(results)} control results {status_counts}")

    return control_results, risk_findings


def print_score(score: ComplianceScore, risk_findings: list[RiskFinding]):
    l2 = "not evaluated" if score.l2_score is None else f"{score.l2_score:.2f}%"
    print(f"  Overall Score:    {score.overall_score:.2f}% ({score.risk_rating})")
    print(f"  L1 Score:         {score.l1_score:.2f}%")
    print(f"  L2 Score:         {l2}")
    print(f"  Checks:           {score.passed_checks} of {score.total_checks} passed")
    for category, value in score.scores_by_category.items():
        print(f"    {category:30s} {value:6.2f}%")

    by_severity: dict[str, int] = {}
    for f in risk_findings:
        by_severity[f.severity] = by_severity.get(f.severity, 0) + 1
    print(f"  NSG Risks:        {len(risk_findings)} {by_severity}")


def generate_reports(
    score: ComplianceScore,
    control_results: list[ControlResult],
    risk_findings: list[RiskFinding],
    collector_results: dict,
    output_dir: Path,
    scan_id: str,
    scope_name: str,
    formats: list[str],
    safety_audit: Optional[dict] = None,
) -> list[Path]:
    """Generate all requested report formats."""
    created = []

    if "json" in formats:
        path = export_json(score, control_results, risk_findings, collector_results,
                           output_dir, scan_id, safety_audit)
        created.append(path)
        print(f"  📄 JSON:       {path}")

    if "csv" in formats:
        paths = export_csv(score, control_results, risk_findings, output_dir, scan_id)
        created.extend(paths)
        for p in paths:
            print(f"  📊 CSV:        {p}")

    if "markdown" in formats:
        path = export_markdown(score, control_results, risk_findings, output_dir, scan_id, scope_name)
        created.append(path)
        print(f"  📝 Markdown:   {path}")

    if "html" in formats:
        path = export_html(score, control_results, risk_findings, output_dir, scan_id, scope_name)
        created.append(path)
        print(f"  🌐 HTML:       {path}")

    return created


def _banner(title: str):
    print("\n" + "=" * 70)
    print(f" {title}")
    print("=" * 70 + "\n")


async def run_scan(config: EngineConfig, scan_id: str, scope_name: str) -> int:
    guardian = SafetyGuardian()
    guardian.print_banner()

    print("\n🔐 Authenticating...")
    try:
        token = Authenticator(config.auth).acquire_token()
    except AuthenticationError as e:
        print(f"❌ Authentication failed: {e}")
        return 1
    print("✅ Authentication successful.")

    _banner("PHASE 1: DATA COLLECTION")
    async with ArmClient(token, guardian, max_pages=config.collection.max_pages) as arm:
        collector_results = await run_collection(arm, config)
        stats = arm.get_stats()
    logger.debug(f"ARM client stats: {stats}")

    if len(collector_results) <= 1:
        print("\n❌ No resource data collected. Cannot proceed with analysis.")
        return 1

    _banner("PHASE 2: CONTROL ANALYSIS")
    control_results, risk_findings = run_analysis(collector_results)

    return _score_and_report(
        config, scan_id, scope_name, control_results, risk_findings,
        collector_results, guardian.get_audit_record(),
    )


def run_offline(config: EngineConfig, input_path: Path, scan_id: str, scope_name: str) -> int:
    _banner("PHASE 1: LOAD INPUT")
    findings, rules = load_offline_input(input_path)
    print(f"  ✅ {len(findings)} findings, {len(rules)} security rules from {input_path}")

    _banner("PHASE 2: NSG EXPOSURE ANALYSIS")
    risk_findings = analyze_rules(rules)
    print(f"  ✅ {len(risk_findings)} risk findings")

    return _score_and_report(config, scan_id, scope_name, findings, risk_findings, {}, None)


def _score_and_report(
    config: EngineConfig,
    scan_id: str,
    scope_name: str,
    control_results: list[ControlResult],
    risk_findings: list[RiskFinding],
    collector_results: dict,
    safety_audit: Optional[dict],
) -> int:
    _banner("PHASE 3: COMPLIANCE SCORING")
    score = calculate_compliance_score(
        control_results,
        include_level2=config.scoring.include_level2,
        config=config.scoring,
    )
    print_score(score, risk_findings)

    _banner("PHASE 4: REPORT GENERATION")
    output_dir = config.output.scan_dir
    created = generate_reports(
        score, control_results, risk_findings, collector_results,
        output_dir, scan_id, scope_name, config.output.formats, safety_audit,
    )

    _banner("SCAN COMPLETE")
    print(f"  Score: {score.overall_score:.2f}% ({score.risk_rating})")
    print(f"  Files: {len(created)} reports generated")
    print(f"  Path:  {output_dir.resolve()}")
    print()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for `python -m azure_governance_engine` and the console script."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = build_config(args)
    except ConfigError as e:
        print(f"\n❌ {e}")
        return 2
    if config.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    scan_id = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S") + "_" + uuid.uuid4().hex[:8]

    print("=" * 70)
    print(f" Azure Governance Engine v{__version__}")
    print(" Mode: READ-ONLY — No Azure resources will be modified")
    print("=" * 70)
    print(f"\n📋 Scan ID: {scan_id}")
    print(f"📂 Output:  {config.output.scan_dir.resolve()}")

    try:
        if args.command == "analyze":
            scope_name = args.scope_name or args.input.stem
            return run_offline(config, args.input, scan_id, scope_name)
        scope_name = args.scope_name or (
            ", ".join(config.collection.subscriptions) or "All enabled subscriptions"
        )
        return asyncio.run(run_scan(config, scan_id, scope_name))
    except ConfigError as e:
        print(f"\n❌ {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
