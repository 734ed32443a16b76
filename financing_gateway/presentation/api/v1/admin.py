"""Admin financing endpoints: catalog, profiles, plans and reporting."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from financing_gateway.application.dto import (
    ApproveProfileRequest,
    CancelPlanRequest,
    TemplateRequest,
)
from financing_gateway.application.services import (
    AnalyticsService,
    PlanService,
    ProfileService,
    TemplateService,
)
from financing_gateway.core.dependencies import (
    get_analytics_service,
    get_plan_service,
    get_profile_service,
    get_template_service,
)
from financing_gateway.domain.entities import PlanStatus
from financing_gateway.presentation.schemas import (
    AnalyticsResponseSchema,
    ApproveProfileRequestSchema,
    CancelPlanRequestSchema,
    ErrorResponseSchema,
    PlanResponseSchema,
    ProfileResponseSchema,
    ReconciliationResponseSchema,
    RevokeProfileRequestSchema,
    TemplateRequestSchema,
    TemplateResponseSchema,
    UpdateProfileRequestSchema,
)

admin_router = APIRouter(
    prefix="/admin/financing",
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid request"},
        404: {"model": ErrorResponseSchema, "description": "Resource not found"},
    },
)


def _template_dto(request: TemplateRequestSchema) -> TemplateRequest:
    return TemplateRequest(
        template_id=request.template_id,
        name=request.name,
        description=request.description,
        number_of_payments=request.number_of_payments,
        frequency=request.frequency,
        min_amount_cents=request.min_amount_cents,
        max_amount_cents=request.max_amount_cents,
        down_payment_percent=str(request.down_payment_percent),
        processing_fee_percent=str(request.processing_fee_percent),
        is_active=request.is_active,
        sort_order=request.sort_order,
    )


# Templates

@admin_router.get(
    "/templates",
    response_model=list[TemplateResponseSchema],
    summary="List Templates",
)
async def list_templates(
    template_service: Annotated[TemplateService, Depends(get_template_service)],
    active: Annotated[Optional[bool], Query()] = None,
) -> list[TemplateResponseSchema]:
    templates = await template_service.list_templates(active=active)
    return [TemplateResponseSchema.model_validate(t) for t in templates]


@admin_router.get(
    "/templates/{template_id}",
    response_model=TemplateResponseSchema,
    summary="Get Template",
)
async def get_template(
    template_id: Annotated[str, Path(min_length=1, max_length=100)],
    template_service: Annotated[TemplateService, Depends(get_template_service)],
) -> TemplateResponseSchema:
    template = await template_service.get_template(template_id)
    return TemplateResponseSchema.model_validate(template)


@admin_router.post(
    "/templates",
    response_model=TemplateResponseSchema,
    status_code=201,
    summary="Create Template",
    responses={
        409: {"model": ErrorResponseSchema, "description": "Template id already exists"},
    },
)
async def create_template(
    request: TemplateRequestSchema,
    template_service: Annotated[TemplateService, Depends(get_template_service)],
) -> TemplateResponseSchema:
    template = await template_service.create_template(_template_dto(request))
    return TemplateResponseSchema.model_validate(template)


@admin_router.put(
    "/templates/{template_id}",
    response_model=TemplateResponseSchema,
    summary="Update Template",
    description="Replace a template's terms. Existing plans keep the terms they were created with.",
)
async def update_template(
    template_id: Annotated[str, Path(min_length=1, max_length=100)],
    request: TemplateRequestSchema,
    template_service: Annotated[TemplateService, Depends(get_template_service)],
) -> TemplateResponseSchema:
    template = await template_service.update_template(template_id, _template_dto(request))
    return TemplateResponseSchema.model_validate(template)


@admin_router.delete(
    "/templates/{template_id}",
    response_model=TemplateResponseSchema,
    summary="Deactivate Template",
)
async def deactivate_template(
    template_id: Annotated[str, Path(min_length=1, max_length=100)],
    template_service: Annotated[TemplateService, Depends(get_template_service)],
) -> TemplateResponseSchema:
    template = await template_service.deactivate_template(template_id)
    return TemplateResponseSchema.model_validate(template)


# Customer profiles

@admin_router.get(
    "/profiles",
    response_model=list[ProfileResponseSchema],
    summary="List Financing Profiles",
)
async def list_profiles(
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
    approved: Annotated[Optional[bool], Query()] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> list[ProfileResponseSchema]:
    profiles = await profile_service.list_profiles(approved=approved, limit=limit)
    return [ProfileResponseSchema.model_validate(p) for p in profiles]


@admin_router.get(
    "/profiles/{customer_id}",
    response_model=ProfileResponseSchema,
    summary="Get Financing Profile",
)
async def get_profile(
    customer_id: Annotated[str, Path(min_length=1, max_length=255)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
) -> ProfileResponseSchema:
    profile = await profile_service.get_profile(customer_id)
    return ProfileResponseSchema.model_validate(profile)


@admin_router.post(
    "/profiles/{customer_id}/approve",
    response_model=ProfileResponseSchema,
    summary="Approve Customer",
)
async def approve_profile(
    customer_id: Annotated[str, Path(min_length=1, max_length=255)],
    request: ApproveProfileRequestSchema,
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
) -> ProfileResponseSchema:
    dto = ApproveProfileRequest(
        actor=request.actor,
        max_approved_cents=request.max_approved_cents,
        notes=request.notes,
        billing_customer_ref=request.billing_customer_ref,
        email=request.email,
    )
    profile = await profile_service.approve(customer_id, dto)
    return ProfileResponseSchema.model_validate(profile)


@admin_router.post(
    "/profiles/{customer_id}/revoke",
    response_model=ProfileResponseSchema,
    summary="Revoke Customer Approval",
    responses={
        409: {"model": ErrorResponseSchema, "description": "Customer has open plans"},
    },
)
async def revoke_profile(
    customer_id: Annotated[str, Path(min_length=1, max_length=255)],
    request: RevokeProfileRequestSchema,
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
) -> ProfileResponseSchema:
    profile = await profile_service.revoke(customer_id, actor=request.actor, reason=request.reason)
    return ProfileResponseSchema.model_validate(profile)


@admin_router.put(
    "/profiles/{customer_id}",
    response_model=ProfileResponseSchema,
    summary="Update Financing Details",
    responses={
        409: {"model": ErrorResponseSchema, "description": "Customer not approved"},
    },
)
async def update_profile(
    customer_id: Annotated[str, Path(min_length=1, max_length=255)],
    request: UpdateProfileRequestSchema,
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
) -> ProfileResponseSchema:
    profile = await profile_service.update_details(
        customer_id,
        actor=request.actor,
        max_approved_cents=request.max_approved_cents,
        notes=request.notes,
        billing_customer_ref=request.billing_customer_ref,
        email=request.email,
    )
    return ProfileResponseSchema.model_validate(profile)


# Plans

@admin_router.get(
    "/plans",
    response_model=list[PlanResponseSchema],
    summary="List Plans",
)
async def list_plans(
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
    status: Annotated[Optional[PlanStatus], Query()] = None,
    customer_id: Annotated[Optional[str], Query(max_length=255)] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[PlanResponseSchema]:
    plans = await plan_service.list_plans(
        status=status,
        customer_id=customer_id,
        limit=limit,
        offset=offset,
    )
    return [PlanResponseSchema.model_validate(p) for p in plans]


@admin_router.get(
    "/plans/{plan_id}",
    response_model=PlanResponseSchema,
    summary="Get Plan",
)
async def get_plan(
    plan_id: Annotated[UUID, Path()],
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
) -> PlanResponseSchema:
    plan = await plan_service.get_plan(plan_id)
    return PlanResponseSchema.model_validate(plan)


@admin_router.post(
    "/plans/{plan_id}/cancel",
    response_model=PlanResponseSchema,
    summary="Cancel Plan",
    responses={
        409: {"model": ErrorResponseSchema, "description": "Plan already finished"},
    },
)
async def cancel_plan(
    plan_id: Annotated[UUID, Path()],
    request: CancelPlanRequestSchema,
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
) -> PlanResponseSchema:
    dto = CancelPlanRequest(reason=request.reason, actor=request.actor)
    plan = await plan_service.cancel_plan(plan_id, dto)
    return PlanResponseSchema.model_validate(plan)


# Reporting and reconciliation

@admin_router.get(
    "/analytics",
    response_model=AnalyticsResponseSchema,
    summary="Financing Analytics",
    description="Plan counts by status, amounts financed and collected, default rate.",
)
async def get_analytics(
    analytics_service: Annotated[AnalyticsService, Depends(get_analytics_service)],
) -> AnalyticsResponseSchema:
    analytics = await analytics_service.get_analytics()
    return AnalyticsResponseSchema.model_validate(analytics)


@admin_router.post(
    "/reconcile/cancellations",
    response_model=ReconciliationResponseSchema,
    summary="Retry Owed Cancellations",
    description="Retry external billing cancellations that failed when a plan finished.",
)
async def reconcile_cancellations(
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> ReconciliationResponseSchema:
    result = await plan_service.retry_pending_cancellations(limit=limit)
    return ReconciliationResponseSchema.model_validate(result)
