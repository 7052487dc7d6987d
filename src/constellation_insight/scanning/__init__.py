"""Scan coordination and external scanner adapters."""

from .coordinator import ScanCoordinator, ScanTicket
from .scanner import CommandScanner, JsonFileScanner, Scanner

__all__ = ["ScanCoordinator", "ScanTicket", "Scanner", "CommandScanner", "JsonFileScanner"]
