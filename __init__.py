"""
Meal Stipend Calculator

This package provides an API that computes monthly meal stipend balances
from the attendance workbooks employees upload for each half-year.

Key modules:
- main.py: FastAPI application with API endpoints
- attendance_extractor.py: Reading attendance rows out of uploaded workbooks
- balance_calculator.py: Per-employee counts, entitlement and balance
- calculation_service.py: Orchestration of a monthly calculation
- sheets_writer.py: Upload of the results to Google Sheets
- utils/result.py: Result pattern implementation for error handling
"""
