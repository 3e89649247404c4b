import os
import logging
from datetime import datetime
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


class CalculationAudit:
    """
    Records calculation steps (formula, inputs, result) for later review of
    stored assessments. Disabled by default: the calculators then only emit
    DEBUG log records and touch no files.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(CalculationAudit, cls).__new__(cls)
            cls._instance.initialized = False
        return cls._instance

    def __init__(self):
        if self.initialized:
            return

        self.enabled = False
        self.session_id: Optional[str] = None
        self.log_file: Optional[str] = None
        self.initialized = True

    def enable(self, log_dir: str) -> str:
        """
        Start a new audit session writing to <log_dir>/audit_<session>.txt.
        Returns the path of the session file.
        """
        self.session_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        os.makedirs(log_dir, exist_ok=True)
        self.log_file = os.path.join(log_dir, f"audit_{self.session_id}.txt")

        with open(self.log_file, "w", encoding="utf-8") as f:
            f.write("=== ESG METRIC CALCULATION AUDIT LOG ===\n")
            f.write(f"Session: {self.session_id}\n")
            f.write("========================================\n\n")

        self.enabled = True
        logger.info(f"Calculation audit enabled: {self.log_file}")
        return self.log_file

    def disable(self):
        self.enabled = False

    def log_calculation(self, context: str, formula: str, variables: Dict[str, Any], result: Any, unit: str = ""):
        """
        Log a calculation step.

        Args:
            context: What is being calculated (e.g., "CO2e: standard GWP")
            formula: Text representation of the equation (e.g., "Σ factor × GWP")
            variables: Actual values used (e.g., {"CH4": 0.01, "GWP_CH4": 27})
            result: The final result (number or classification tag)
            unit: Unit of the result (e.g., "kgCO2e")
        """
        vars_str = ", ".join([f"{k}={v}" for k, v in variables.items()])
        result_str = f"{result:.6f}" if isinstance(result, float) else str(result)
        logger.debug(f"{context}: {formula} [{vars_str}] -> {result_str} {unit}".rstrip())

        if not self.enabled or not self.log_file:
            return

        try:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(f"[{datetime.now().strftime('%H:%M:%S')}] {context}\n")
                f.write(f"  Formula: {formula}\n")
                f.write(f"  Inputs:  {vars_str}\n")
                f.write(f"  Result:  {result_str} {unit}\n")
                f.write("-" * 40 + "\n")
        except OSError as e:
            logger.error(f"Failed to write to audit log: {e}")


# Global Accessor
audit_logger = CalculationAudit()
