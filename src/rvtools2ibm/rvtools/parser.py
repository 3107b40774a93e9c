"""Load an RVTools workbook into an RVToolsData bundle."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import openpyxl

from rvtools2ibm.constants import (
    ACCEPTED_FILE_TYPES,
    MAX_FILE_SIZE_MB,
    RECOMMENDED_SHEETS,
    REQUIRED_SHEETS,
)
from rvtools2ibm.rvtools import sheets
from rvtools2ibm.rvtools.models import ParseResult, RVToolsData, RVToolsMetadata
from rvtools2ibm.utils.logging import get_logger

logger = get_logger(__name__)

# sheet name -> (RVToolsData attribute, parser)
SHEET_PARSERS: dict[str, tuple[str, Callable]] = {
    "vInfo": ("vms", sheets.parse_vinfo),
    "vCPU": ("cpus", sheets.parse_vcpu),
    "vMemory": ("memory", sheets.parse_vmemory),
    "vDisk": ("disks", sheets.parse_vdisk),
    "vDatastore": ("datastores", sheets.parse_vdatastore),
    "vSnapshot": ("snapshots", sheets.parse_vsnapshot),
    "vNetwork": ("networks", sheets.parse_vnetwork),
    "vCD": ("cds", sheets.parse_vcd),
    "vTools": ("tools", sheets.parse_vtools),
    "vCluster": ("clusters", sheets.parse_vcluster),
    "vHost": ("hosts", sheets.parse_vhost),
}


@dataclass
class ParsingProgress:
    phase: str                  # reading | parsing | validating | complete | error
    current_sheet: str = ""
    sheets_processed: int = 0
    total_sheets: int = 0
    message: str = ""


@dataclass
class FileValidation:
    valid: bool
    error: Optional[str] = None


ProgressCallback = Callable[[ParsingProgress], None]


def validate_file(path: str | Path) -> FileValidation:
    """Check size and extension before the workbook is opened."""
    path = Path(path)
    if not path.is_file():
        return FileValidation(False, f"File not found: {path}")

    size_mb = path.stat().st_size / (1024 * 1024)
    if size_mb > MAX_FILE_SIZE_MB:
        return FileValidation(
            False,
            f"File too large. Maximum size is {MAX_FILE_SIZE_MB}MB, got {size_mb:.1f}MB",
        )

    ext = path.suffix.lower()
    if ext not in ACCEPTED_FILE_TYPES:
        return FileValidation(False, f"Invalid file type. Expected .xlsx or .xls, got {ext}")

    return FileValidation(True)


def extract_metadata(workbook, file_name: str) -> RVToolsMetadata:
    """Pull collection date, environment and vCenter version from the export.

    RVTools names its files ``RVTools_export_<env>_<YYYY-MM-DD>_<HH.MM.SS>.xlsx``.
    """
    collection_date = None
    date_match = re.search(r"(\d{4}-\d{2}-\d{2})_(\d{2}\.\d{2}\.\d{2})", file_name)
    if date_match:
        stamp = f"{date_match.group(1)}T{date_match.group(2).replace('.', ':')}"
        try:
            collection_date = datetime.fromisoformat(stamp)
        except ValueError:
            logger.debug(f"Unparsable collection date in file name: {stamp}")

    env_match = re.search(r"RVTools_export_([^_]+)_", file_name)
    environment = env_match.group(1) if env_match else None

    vcenter_version = None
    if "vHealth" in workbook.sheetnames:
        rows = sheets.parse_sheet(
            workbook["vHealth"].iter_rows(values_only=True),
            {"Entity": "entity", "Name": "name", "Message": "message"},
        )
        for row in rows:
            entity = str(row.get("entity") or row.get("name") or "")
            if "vcenter" in entity.lower():
                vcenter_version = str(row.get("message") or entity)
                break

    return RVToolsMetadata(
        file_name=file_name,
        collection_date=collection_date,
        vcenter_version=vcenter_version,
        environment=environment,
    )


def parse_rvtools_file(
    path: str | Path,
    on_progress: Optional[ProgressCallback] = None,
) -> ParseResult:
    """Parse an RVTools export.

    Never raises for malformed workbooks: problems are reported through
    ``ParseResult.errors`` with ``success=False``.
    """
    path = Path(path)

    def report(progress: ParsingProgress) -> None:
        if on_progress:
            on_progress(progress)

    errors: list[str] = []
    warnings: list[str] = []

    try:
        report(ParsingProgress("reading", message="Reading file..."))
        workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)

        try:
            available = set(workbook.sheetnames)

            missing_required = [s for s in REQUIRED_SHEETS if s not in available]
            if missing_required:
                errors.append(f"Missing required sheets: {', '.join(missing_required)}")
                report(ParsingProgress("error", message=errors[-1]))
                return ParseResult(success=False, errors=errors, warnings=warnings)

            missing_recommended = [s for s in RECOMMENDED_SHEETS if s not in available]
            if missing_recommended:
                warnings.append(
                    "Missing recommended sheets (some analysis may be limited): "
                    f"{', '.join(missing_recommended)}"
                )
                logger.warning(warnings[-1])

            to_parse = [name for name in SHEET_PARSERS if name in available]
            data = RVToolsData(metadata=extract_metadata(workbook, path.name))

            for index, sheet_name in enumerate(to_parse):
                report(ParsingProgress(
                    "parsing",
                    current_sheet=sheet_name,
                    sheets_processed=index,
                    total_sheets=len(to_parse),
                    message=f"Parsing {sheet_name}...",
                ))
                attr, parser = SHEET_PARSERS[sheet_name]
                records = parser(workbook[sheet_name].iter_rows(values_only=True))
                setattr(data, attr, records)
                logger.debug(f"{sheet_name}: {len(records)} rows")
        finally:
            workbook.close()

        report(ParsingProgress(
            "validating",
            sheets_processed=len(to_parse),
            total_sheets=len(to_parse),
            message="Validating data...",
        ))

        if not data.vms:
            errors.append("No VMs found in vInfo sheet")
            report(ParsingProgress("error", message=errors[-1]))
            return ParseResult(success=False, data=data, errors=errors, warnings=warnings)

        message = f"Successfully parsed {len(data.vms)} VMs"
        logger.info(message)
        report(ParsingProgress(
            "complete",
            sheets_processed=len(to_parse),
            total_sheets=len(to_parse),
            message=message,
        ))
        return ParseResult(success=True, data=data, errors=errors, warnings=warnings)

    except Exception as e:
        errors.append(f"Failed to parse file: {e}")
        logger.error(errors[-1])
        report(ParsingProgress("error", message=errors[-1]))
        return ParseResult(success=False, errors=errors, warnings=warnings)
