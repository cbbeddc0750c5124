import logging

# Project logger shared by the auth flow, uploader and publish pipeline
logger = logging.getLogger("yoto_publisher")


def log_section(title: str) -> None:
    logger.info("")
    logger.info("=== %s ===", title)


def log_info(message: str) -> None:
    logger.info("%s", message)


def log_step(message: str) -> None:
    """Ongoing work (request sent, file being transferred, ...)."""
    logger.info("→ %s", message)


def log_success(message: str) -> None:
    logger.info("✅ %s", message)


def log_warning(message: str) -> None:
    """Non-fatal problem, e.g. one track failed but the run continues."""
    logger.warning("⚠️ %s", message)


def log_error(message: str) -> None:
    logger.error("❌ %s", message)


def log_debug(message: str) -> None:
    logger.debug("%s", message)


def log_progress(current: int, total: int, prefix: str = "") -> None:
    """
    One-line progress entry.

      log_progress(2, 5, prefix="Uploading")
      -> "Uploading 2/5 (40.0%)"
    """
    if total <= 0:
        total = 1

    percent = max(0.0, min(1.0, current / total)) * 100

    if prefix:
        logger.info("%s %d/%d (%.1f%%)", prefix, current, total, percent)
    else:
        logger.info("%d/%d (%.1f%%)", current, total, percent)
