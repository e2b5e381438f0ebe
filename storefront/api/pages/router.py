"""Storefront page content resolved from the requesting hostname."""

from fastapi import APIRouter, Request

from storefront.api.core.dependencies import AppSettingsDep, AsyncSessionDep
from storefront.api.core.messages import APIResponse, MessageCode
from storefront.api.pages.schemas import PageDataModel
from storefront.modules.catalog.service import ProductCatalogService
from storefront.utils.logger import get_request_hostname

router = APIRouter(tags=["storefront"])


@router.get("/page-data", response_model=APIResponse[PageDataModel])
async def get_page_data(
    request: Request,
    db: AsyncSessionDep,
    settings: AppSettingsDep,
) -> APIResponse[PageDataModel]:
    page = await ProductCatalogService(db).get_page_data(
        get_request_hostname(request),
        default_title=settings.DEFAULT_PAGE_TITLE,
        default_description=settings.DEFAULT_PAGE_DESCRIPTION,
    )
    message_code = MessageCode.PAGE_DATA_DEFAULT if page.is_default else MessageCode.SUCCESS
    return APIResponse.success(message_code, data=PageDataModel.from_page_data(page))
