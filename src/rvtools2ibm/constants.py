"""Shared thresholds and sheet names for RVTools analysis."""

from __future__ import annotations

# ═══════════════════════════════════════════════════════════════════
#  MIGRATION THRESHOLDS
# ═══════════════════════════════════════════════════════════════════

HW_VERSION_MINIMUM = 10
HW_VERSION_RECOMMENDED = 14

SNAPSHOT_WARNING_AGE_DAYS = 7
SNAPSHOT_BLOCKER_AGE_DAYS = 30

# VPC VSI limits
VPC_BOOT_DISK_MAX_GB = 250
VPC_MAX_DISKS_PER_VM = 12
LARGE_DISK_THRESHOLD_GB = 2000
VSI_MEMORY_WARNING_GIB = 512
VSI_MEMORY_MAX_GIB = 1024

# ROKS bare-metal workers
BARE_METAL_RESERVED_MEMORY_GIB = 32

# ═══════════════════════════════════════════════════════════════════
#  INPUT FILE
# ═══════════════════════════════════════════════════════════════════

MAX_FILE_SIZE_MB = 50
ACCEPTED_FILE_TYPES = (".xlsx", ".xls")

REQUIRED_SHEETS = ("vInfo", "vDisk", "vDatastore")

RECOMMENDED_SHEETS = (
    "vInfo", "vCPU", "vMemory", "vDisk", "vPartition", "vNetwork", "vCD",
    "vSnapshot", "vTools", "vCluster", "vHost", "vDatastore", "vRP", "vSource",
)

# ═══════════════════════════════════════════════════════════════════
#  REPORT COLOURS (hex, no leading '#')
# ═══════════════════════════════════════════════════════════════════

COLORS = {
    "green": "24A148",
    "gray": "6F6F6F",
    "yellow": "F1C21B",
    "red": "DA1E28",
    "blue": "0F62FE",
    "cyan": "1192E8",
    "orange": "FF832B",
    "purple": "8A3FFC",
    "teal": "009D9A",
    "magenta": "D02670",
}

COMPLEXITY_COLORS = {
    "Simple": COLORS["green"],
    "Moderate": COLORS["cyan"],
    "Complex": COLORS["orange"],
    "Blocker": COLORS["red"],
}
