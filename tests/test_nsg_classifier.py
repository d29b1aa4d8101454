"""Tests for the NSG risk classifier.

Covers:
- Only Allow + Inbound rules with an internet-exposed source are flagged
- Mixed private/public source lists still flag
- "*" ports produce a single Critical All Ports finding
- Ranges are evaluated against the watch list, with per-rule de-duplication
- Ordering by severity, then NSG priority
- Malformed port specs are skipped without aborting the rule
"""

import pytest

from azure_governance_engine.network import (
    SecurityRule,
    analyze_rule,
    analyze_rules,
    exposes_port,
    parse_port_spec,
)

from conftest import arm_rule, make_rule


# ---------------------------------------------------------------------------
# Rule filtering
# ---------------------------------------------------------------------------

def test_deny_rule_produces_nothing():
    assert analyze_rule(make_rule(access="Deny", ports=["*"])) == []


def test_outbound_rule_produces_nothing():
    assert analyze_rule(make_rule(direction="Outbound", ports=["22"])) == []


def test_private_sources_produce_nothing():
    rule = make_rule(sources=["10.0.0.0/8", "192.168.1.0/24", "172.20.0.5", "VirtualNetwork"])
    assert analyze_rule(rule) == []


def test_no_sources_produce_nothing():
    assert analyze_rule(make_rule(sources=[])) == []
    assert analyze_rule(make_rule(sources=["", "  "])) == []


def test_mixed_sources_flag_once_per_port():
    rule = make_rule(name="ssh-mixed", sources=["10.0.0.0/8", "0.0.0.0/0"], ports=["22"])
    findings = analyze_rule(rule)
    assert len(findings) == 1
    finding = findings[0]
    assert finding.severity == "Critical"
    assert finding.port == "22"
    assert finding.port_name == "SSH"
    assert finding.source == "10.0.0.0/8, 0.0.0.0/0"
    assert finding.rule_name == "ssh-mixed"


@pytest.mark.parametrize("source", ["*", "Internet", "INTERNET", "any", "0.0.0.0/0", "203.0.113.7"])
def test_internet_sources_flag(source):
    assert len(analyze_rule(make_rule(sources=[source], ports=["3389"]))) == 1


def test_access_and_direction_are_case_insensitive():
    rule = make_rule(access="allow", direction="INBOUND", ports=["445"])
    assert [f.port for f in analyze_rule(rule)] == ["445"]


def test_172_boundary():
    assert analyze_rule(make_rule(sources=["172.9.0.0/16"])) != []
    assert analyze_rule(make_rule(sources=["172.16.0.0/16"])) == []
    assert analyze_rule(make_rule(sources=["172.31.255.255"])) == []
    assert analyze_rule(make_rule(sources=["172.32.0.0/16"])) != []


# ---------------------------------------------------------------------------
# Port evaluation
# ---------------------------------------------------------------------------

def test_wildcard_port_single_all_ports_finding():
    findings = analyze_rule(make_rule(ports=["*"]))
    assert len(findings) == 1
    finding = findings[0]
    assert finding.severity == "Critical"
    assert finding.port == "*"
    assert finding.port_name == "All Ports"
    assert finding.description == "All ports open to internet - extremely dangerous"


def test_range_emits_watched_ports_in_range():
    findings = analyze_rule(make_rule(ports=["20-26"]))
    by_port = {f.port: f for f in findings}
    assert sorted(by_port) == ["21", "22", "23", "25"]
    assert by_port["22"].severity == "Critical"
    assert by_port["22"].port_name == "SSH"
    assert by_port["23"].severity == "High"
    assert by_port["25"].severity == "Medium"
    assert by_port["25"].port_name == "SMTP"


def test_full_range_covers_whole_watch_list():
    findings = analyze_rule(make_rule(ports=["0-65535"]))
    assert len(findings) == 18
    assert all(f.port != "*" for f in findings)


def test_unwatched_port_produces_nothing():
    assert analyze_rule(make_rule(ports=["8443"])) == []


def test_overlapping_ranges_deduplicate():
    rule = make_rule(ports=["20-25", "22", "22-23", "3389", "3389"])
    ports = [f.port for f in analyze_rule(rule)]
    assert sorted(ports) == sorted(set(ports))
    assert set(ports) == {"21", "22", "23", "25", "3389"}


def test_comma_packed_ports_and_sources():
    rule = make_rule(sources=["10.0.0.1, 8.8.8.8"], ports=["22,3389 445"])
    findings = analyze_rule(rule)
    assert {f.port for f in findings} == {"22", "3389", "445"}
    assert findings[0].source == "10.0.0.1, 8.8.8.8"


def test_bad_port_spec_is_skipped(caplog):
    rule = make_rule(ports=["abc", "30-20", "70000", "22"])
    findings = analyze_rule(rule)
    assert [f.port for f in findings] == ["22"]
    assert "unparseable port spec" in caplog.text


def test_descriptions():
    findings = {f.port: f for f in analyze_rule(make_rule(ports=["22", "445", "1433"]))}
    assert findings["22"].description == "SSH (22) open to internet - high risk of unauthorized access"
    assert findings["445"].description == "SMB (445) open to internet - management port exposed"
    assert findings["1433"].description == "SQL Server (1433) open to internet - service port exposed"


def test_destination_defaults_to_any():
    finding = analyze_rule(make_rule(ports=["22"]))[0]
    assert finding.destination == "Any"


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

def test_findings_sorted_by_severity_then_priority():
    rules = [
        make_rule(name="db", ports=["1433"], priority=100),
        make_rule(name="smb", ports=["445"], priority=300),
        make_rule(name="rdp-late", ports=["3389"], priority=400),
        make_rule(name="ssh-early", ports=["22"], priority=110),
    ]
    findings = analyze_rules(rules)
    assert [f.rule_name for f in findings] == ["ssh-early", "rdp-late", "smb", "db"]
    assert [f.severity for f in findings] == ["Critical", "Critical", "High", "Medium"]


def test_analyze_rules_skips_broken_rule():
    broken = make_rule(name="broken")
    broken.destination_port_ranges = None
    good = make_rule(name="good", ports=["22"])
    findings = analyze_rules([broken, good])
    assert [f.rule_name for f in findings] == ["good"]


def test_missing_or_text_priority_does_not_abort_ranking():
    rules = [
        make_rule(name="no-priority", ports=["22"], priority=None),
        make_rule(name="text-priority", ports=["22"], priority="200"),
        make_rule(name="numbered", ports=["3389"], priority=150),
    ]
    assert rules[0].priority == 4096
    assert rules[1].priority == 200

    findings = analyze_rules(rules)
    assert [f.rule_name for f in findings] == ["numbered", "text-priority", "no-priority"]


# ---------------------------------------------------------------------------
# Models and helpers
# ---------------------------------------------------------------------------

def test_from_arm_merges_singular_and_plural_fields():
    raw = arm_rule("web", source="Internet", port="80")
    raw["properties"]["sourceAddressPrefixes"] = ["10.1.0.0/16"]
    raw["properties"]["destinationPortRanges"] = ["8080", "443"]
    rule = SecurityRule.from_arm(raw, nsg_name="nsg-web", resource_group="rg", subscription_id="sub")
    assert rule.source_address_prefixes == ["Internet", "10.1.0.0/16"]
    assert rule.destination_port_ranges == ["80", "8080", "443"]
    assert rule.priority == 100
    assert rule.protocol == "Tcp"

    findings = analyze_rule(rule)
    assert [f.port for f in findings] == ["8080"]
    assert findings[0].nsg_name == "nsg-web"
    assert findings[0].resource_group == "rg"


def test_from_arm_bad_priority_sorts_last():
    raw = arm_rule("odd")
    raw["properties"]["priority"] = "n/a"
    assert SecurityRule.from_arm(raw).priority == 4096


def test_from_dict_accepts_pascal_case():
    rule = SecurityRule.from_dict({
        "Name": "rdp",
        "Access": "Allow",
        "Direction": "Inbound",
        "SourceAddressPrefix": "*",
        "DestinationPortRange": "3389",
        "Priority": 200,
    })
    assert rule.name == "rdp"
    assert rule.priority == 200
    assert [f.port for f in analyze_rule(rule)] == ["3389"]


def test_exposes_port():
    web = make_rule(ports=["80-443"])
    assert exposes_port(web, 80)
    assert exposes_port(web, 443)
    assert not exposes_port(web, 8080)
    assert exposes_port(make_rule(ports=["*"]), 443)
    assert not exposes_port(make_rule(ports=["443"], sources=["10.0.0.0/8"]), 443)
    assert not exposes_port(make_rule(ports=["443"], access="Deny"), 443)


@pytest.mark.parametrize("spec, expected", [
    ("443", (443, 443)),
    (" 1000-2000 ", (1000, 2000)),
    ("0-65535", (0, 65535)),
    ("2000-1000", None),
    ("65536", None),
    ("http", None),
    ("1-", None),
])
def test_parse_port_spec(spec, expected):
    assert parse_port_spec(spec) == expected
