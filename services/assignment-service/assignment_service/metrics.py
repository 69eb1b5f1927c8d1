from prometheus_client import Counter

ASSIGNMENT_PRIMARY_ASSIGNED_TOTAL = Counter(
    "assignment_primary_assigned_total",
    "Number of manual primary coach assignments",
)

ASSIGNMENT_SECONDARY_ADDED_TOTAL = Counter(
    "assignment_secondary_added_total",
    "Number of backup coaches attached to athletes",
)

ASSIGNMENT_COACH_REMOVED_TOTAL = Counter(
    "assignment_coach_removed_total",
    "Number of coach removals from athletes",
    ["slot"],
)

ASSIGNMENT_FAILOVERS_TOTAL = Counter(
    "assignment_failovers_total",
    "Number of per-athlete failover outcomes",
    ["outcome"],
)

ASSIGNMENT_AVAILABILITY_UPDATES_TOTAL = Counter(
    "assignment_availability_updates_total",
    "Number of coach availability updates",
)

ASSIGNMENT_PERSISTENCE_FAILURES_TOTAL = Counter(
    "assignment_persistence_failures_total",
    "Number of state writes that failed after all retries",
)

ASSIGNMENT_ROSTER_SYNCS_TOTAL = Counter(
    "assignment_roster_syncs_total",
    "Number of roster merges applied to the coach directory",
)
