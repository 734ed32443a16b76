"""Customer-facing financing endpoints."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from financing_gateway.application.dto import CancelPlanRequest, CreatePlanRequest
from financing_gateway.application.services import (
    EligibilityService,
    PlanService,
    TemplateService,
)
from financing_gateway.core.dependencies import (
    get_eligibility_service,
    get_plan_service,
    get_template_service,
)
from financing_gateway.presentation.schemas import (
    CancelPlanRequestSchema,
    CreatePlanRequestSchema,
    CreatePlanResponseSchema,
    EligibilityResponseSchema,
    ErrorResponseSchema,
    PlanResponseSchema,
    TemplateResponseSchema,
)

financing_router = APIRouter(
    prefix="/financing",
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid request"},
    },
)


@financing_router.get(
    "/eligibility",
    response_model=EligibilityResponseSchema,
    summary="Check Financing Eligibility",
    description="""
    Decide whether a customer may finance a purchase amount.

    Returns the reason when financing is not offered, otherwise the
    templates the customer may choose from with a quote for the amount.
    """,
)
async def check_eligibility(
    customer_id: Annotated[str, Query(min_length=1, max_length=255)],
    amount_cents: Annotated[int, Query(gt=0, description="Purchase amount in cents")],
    eligibility_service: Annotated[EligibilityService, Depends(get_eligibility_service)],
) -> EligibilityResponseSchema:
    response = await eligibility_service.check(customer_id, amount_cents)
    return EligibilityResponseSchema.model_validate(response)


@financing_router.get(
    "/templates",
    response_model=list[TemplateResponseSchema],
    summary="List Available Templates",
    description="Active financing templates, optionally those covering a purchase amount.",
)
async def list_available_templates(
    template_service: Annotated[TemplateService, Depends(get_template_service)],
    amount_cents: Annotated[Optional[int], Query(gt=0)] = None,
) -> list[TemplateResponseSchema]:
    templates = await template_service.list_available(amount_cents)
    return [TemplateResponseSchema.model_validate(t) for t in templates]


@financing_router.post(
    "/plans",
    response_model=CreatePlanResponseSchema,
    status_code=201,
    summary="Create Installment Plan",
    description="""
    Create a PENDING installment plan and its recurring billing.

    The customer completes the billing setup at the returned checkout URL;
    the plan becomes ACTIVE once the processor confirms it.
    """,
    responses={
        403: {"model": ErrorResponseSchema, "description": "Customer not eligible"},
        404: {"model": ErrorResponseSchema, "description": "Template not offered"},
        422: {"model": ErrorResponseSchema, "description": "Customer rejected by processor"},
        503: {"model": ErrorResponseSchema, "description": "Billing processor unavailable"},
    },
)
async def create_plan(
    request: CreatePlanRequestSchema,
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
) -> CreatePlanResponseSchema:
    dto = CreatePlanRequest(
        customer_id=request.customer_id,
        template_id=request.template_id,
        total_cents=request.total_cents,
        product_label=request.product_label,
        purchase_context_id=request.purchase_context_id,
    )

    response = await plan_service.create_plan(dto)

    return CreatePlanResponseSchema.model_validate(response)


@financing_router.get(
    "/plans/{plan_id}",
    response_model=PlanResponseSchema,
    summary="Get Installment Plan",
    responses={
        404: {"model": ErrorResponseSchema, "description": "Plan not found"},
    },
)
async def get_plan(
    plan_id: Annotated[UUID, Path(description="UUID of the plan to retrieve")],
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
) -> PlanResponseSchema:
    response = await plan_service.get_plan(plan_id)
    return PlanResponseSchema.model_validate(response)


@financing_router.get(
    "/customers/{customer_id}/plans",
    response_model=list[PlanResponseSchema],
    summary="List Customer Plans",
    description="All plans of a customer, newest first.",
)
async def list_plans_for_customer(
    customer_id: Annotated[str, Path(min_length=1, max_length=255)],
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
) -> list[PlanResponseSchema]:
    plans = await plan_service.list_plans_for_customer(customer_id)
    return [PlanResponseSchema.model_validate(p) for p in plans]


@financing_router.post(
    "/plans/{plan_id}/cancel",
    response_model=PlanResponseSchema,
    summary="Cancel Installment Plan",
    responses={
        404: {"model": ErrorResponseSchema, "description": "Plan not found"},
        409: {"model": ErrorResponseSchema, "description": "Plan already finished"},
    },
)
async def cancel_plan(
    plan_id: Annotated[UUID, Path(description="UUID of the plan to cancel")],
    request: CancelPlanRequestSchema,
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
) -> PlanResponseSchema:
    dto = CancelPlanRequest(reason=request.reason, actor=request.actor)
    response = await plan_service.cancel_plan(plan_id, dto)
    return PlanResponseSchema.model_validate(response)
