"""
Financing Gateway - Local Installment Financing Service

A FastAPI-based microservice that evaluates financing eligibility,
generates installment schedules and reconciles installment plans
against a recurring-billing processor.
"""

__version__ = "0.1.0"
