import logging
import traceback
from typing import Dict, Any, List, Optional
from pathlib import Path


LOGGER_NAME = "snippet_registry"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the package logger with a single stream handler."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger


class ErrorHandler:
    """Collects recoverable problems hit while compiling the registry.

    Nothing recorded here aborts a build: module load failures, malformed
    descriptors and unreadable example files are logged as warnings and
    summarised once the run is over.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.errors: List[Dict[str, Any]] = []

    def handle_error(self, error: Exception, context: Dict[str, Any]) -> Dict[str, Any]:
        """Log a recoverable error with its context and keep it for the summary."""
        error_info = {
            "type": type(error).__name__,
            "message": str(error),
            "context": context,
            "traceback": traceback.format_exc() if self.logger.isEnabledFor(logging.DEBUG) else None
        }

        self.logger.warning(
            "%s: %s | Context: %s", error_info["type"], error_info["message"], context
        )

        self.errors.append(error_info)
        return error_info

    def collect_module_error(self, error: Exception, module_path: str, operation: str) -> Dict[str, Any]:
        """Record a descriptor module that could not be loaded."""
        context = {
            "file_path": module_path,
            "operation": operation,
        }
        return self.handle_error(error, context)

    def collect_descriptor_error(
        self,
        error: Exception,
        module_path: str,
        export_name: str,
        index: int,
        descriptor_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Record a descriptor entry that failed validation and was skipped."""
        context = {
            "file_path": module_path,
            "operation": "validate",
            "export": export_name,
            "index": index,
        }
        if descriptor_id:
            context["id"] = descriptor_id
        return self.handle_error(error, context)

    def collect_file_error(self, error: Exception, file_path: str, operation: str) -> Dict[str, Any]:
        """Record an example file that could not be read."""
        context = {
            "file_path": file_path,
            "operation": operation,
        }
        return self.handle_error(error, context)

    def get_error_summary(self) -> Dict[str, Any]:
        """Generate summary of all collected errors."""
        if not self.errors:
            return {"total_errors": 0, "error_types": {}, "failed_files": []}

        error_types: Dict[str, int] = {}
        failed_files = []

        for error in self.errors:
            error_type = error["type"]
            error_types[error_type] = error_types.get(error_type, 0) + 1

            context = error.get("context", {})
            if "file_path" in context:
                failed_files.append({
                    "file": context["file_path"],
                    "error": error["message"],
                    "operation": context.get("operation", "unknown"),
                })

        return {
            "total_errors": len(self.errors),
            "error_types": error_types,
            "failed_files": failed_files
        }

    def clear_errors(self) -> None:
        """Clear collected errors."""
        self.errors.clear()

    def format_error_report(self) -> str:
        """Format user-friendly error report."""
        summary = self.get_error_summary()

        if summary["total_errors"] == 0:
            return ""

        lines = [
            f"\n⚠️  Warning Summary: {summary['total_errors']} problems skipped",
            ""
        ]

        if summary["error_types"]:
            lines.append("Error Types:")
            for error_type, count in summary["error_types"].items():
                lines.append(f"  • {error_type}: {count}")
            lines.append("")

        if summary["failed_files"]:
            lines.append("Affected Files:")
            for failure in summary["failed_files"][:5]:
                file_name = Path(failure["file"]).name
                lines.append(f"  • {file_name} ({failure['operation']}): {failure['error']}")

            if len(summary["failed_files"]) > 5:
                lines.append(f"  ... and {len(summary['failed_files']) - 5} more")

        return "\n".join(lines)


__all__ = ["ErrorHandler", "LOGGER_NAME", "setup_logging"]
