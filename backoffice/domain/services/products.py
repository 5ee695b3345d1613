"""Product catalogue: owned, not moderated, announced to SuperAdmins on creation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog
from backoffice.core.auth import Role
from backoffice.core.errors import (
    AuthorizationError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from backoffice.core.permissions import Capability, ensure_capability
from backoffice.domain.models import Principal
from backoffice.domain.services.notifications import (
    NotificationService,
    NotificationTarget,
    render_notification,
)
from backoffice.domain.slugs import make_unique, normalize_sku, slugify
from backoffice.infrastructure.db.models import ProductModel, utcnow
from backoffice.infrastructure.repositories.unit_of_work import UnitOfWork
from backoffice.libs.storage_client import BlobStorage, UploadedFile
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "short_description",
        "sku",
        "brand",
        "category",
        "price",
        "original_price",
        "discount",
        "stock",
        "low_stock_threshold",
        "in_stock",
        "specifications",
        "tags",
        "is_active",
        "is_featured",
    }
)


@dataclass(slots=True)
class GalleryImage:
    file: UploadedFile
    alt: str = ""
    is_main: bool = False


@dataclass(slots=True)
class ProductDraft:
    name: str
    description: str
    brand: str
    category: str
    price: float
    stock: int
    sku: str | None = None
    short_description: str | None = None
    original_price: float | None = None
    discount: float = 0
    low_stock_threshold: int = 10
    is_active: bool = True
    is_featured: bool = False
    specifications: list[dict[str, str]] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


def check_product_values(values: dict[str, Any]) -> None:
    name = values.get("name")
    if name is not None and len(name.strip()) < 2:
        raise ValidationError("Product name must be at least 2 characters long")
    if values.get("price") is not None and values["price"] < 0:
        raise ValidationError("Price must not be negative")
    if values.get("stock") is not None and values["stock"] < 0:
        raise ValidationError("Stock must not be negative")
    discount = values.get("discount")
    if discount is not None and not 0 <= discount <= 100:
        raise ValidationError("Discount must be between 0 and 100")


def normalize_tags(tags: list[str] | None) -> list[str]:
    return [tag.strip().lower() for tag in tags or [] if tag and tag.strip()]


class ProductService:
    def __init__(self, session: AsyncSession, storage: BlobStorage) -> None:
        self.session = session
        self.storage = storage
        self.uow = UnitOfWork(session)
        self.notifications = NotificationService(session)

    async def create(
        self,
        actor: Principal,
        draft: ProductDraft,
        *,
        image: UploadedFile | None,
        gallery: list[GalleryImage] | None = None,
    ) -> ProductModel:
        ensure_capability(actor.role, Capability.PRODUCTS_MANAGE)
        required = (draft.name, draft.description, draft.brand, draft.category)
        if not all(value and value.strip() for value in required):
            raise ValidationError("Missing required product fields")
        check_product_values(
            {
                "name": draft.name,
                "price": draft.price,
                "stock": draft.stock,
                "discount": draft.discount,
            }
        )
        if image is None or not image.data:
            raise ValidationError("Main product image is required")

        image_url = await self.storage.upload(
            image.data, content_type=image.content_type, prefix="product", filename=image.filename
        )
        gallery_entries = await self._upload_gallery(gallery or [])

        product = ProductModel(
            owner_id=actor.id,
            name=draft.name.strip(),
            slug=await self._unique_slug(draft.name),
            sku=await self._unique_sku(normalize_sku(draft.sku, name=draft.name)),
            description=draft.description.strip(),
            short_description=(draft.short_description or "").strip() or None,
            brand=draft.brand.strip(),
            category=draft.category.strip(),
            price=draft.price,
            original_price=draft.original_price,
            discount=draft.discount,
            stock=draft.stock,
            low_stock_threshold=draft.low_stock_threshold,
            in_stock=draft.stock > 0,
            image_url=image_url,
            gallery=gallery_entries,
            specifications=draft.specifications,
            tags=normalize_tags(draft.tags),
            is_active=draft.is_active,
            is_featured=draft.is_featured,
        )
        async with self.uow:
            await self.uow.products.upsert(product)

        logger.info("product_created", product_id=product.id, sku=product.sku, owner_id=actor.id)
        notified = await self.notifications.try_notify(
            NotificationTarget.role(Role.SUPER_ADMIN),
            render_notification(
                "product", "created", label=product.name, actor=actor.display_name
            ),
            type="product",
            related_id=product.id,
        )
        if not notified:
            await self.session.refresh(product)
        return product

    async def list_active(self) -> list[ProductModel]:
        return await self.uow.products.query(
            ProductModel.is_active.is_(True), order_by=(ProductModel.created_at.desc(),)
        )

    async def get_active(self, product_id: str) -> ProductModel:
        product = await self.uow.products.get(product_id)
        if product is None or not product.is_active:
            raise NotFoundError("Product not found")
        return product

    async def update(
        self, product_id: str, actor: Principal, changes: dict[str, Any]
    ) -> ProductModel:
        """Apply a partial update; a new name regenerates the slug."""
        product = await self._get_managed(product_id, actor)

        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unsupported product field(s): {', '.join(sorted(unknown))}")
        check_product_values(changes)

        changes = dict(changes)
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if changes["name"] != product.name:
                product.slug = await self._unique_slug(changes["name"], current_id=product.id)
        if "sku" in changes:
            sku = normalize_sku(changes["sku"], name=changes.get("name", product.name))
            if sku != product.sku:
                changes["sku"] = await self._unique_sku(sku, current_id=product.id)
            else:
                changes["sku"] = sku
        if "tags" in changes:
            changes["tags"] = normalize_tags(changes["tags"])
        if "stock" in changes and "in_stock" not in changes:
            changes["in_stock"] = changes["stock"] > 0

        async with self.uow:
            for name, value in changes.items():
                setattr(product, name, value)
            product.updated_at = utcnow()

        logger.info("product_updated", product_id=product.id, fields=sorted(changes))
        return product

    async def delete(self, product_id: str, actor: Principal) -> None:
        product = await self._get_managed(product_id, actor)
        async with self.uow:
            await self.uow.products.delete(product)
        logger.info("product_deleted", product_id=product_id, actor_id=actor.id)

    async def _get_managed(self, product_id: str, actor: Principal) -> ProductModel:
        ensure_capability(actor.role, Capability.PRODUCTS_MANAGE)
        product = await self.uow.products.get(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        if product.owner_id != actor.id and not actor.can(Capability.PRODUCTS_READ_ALL):
            raise AuthorizationError("Only the product owner can modify this product")
        return product

    async def _upload_gallery(self, gallery: list[GalleryImage]) -> list[dict[str, Any]]:
        entries = []
        for position, item in enumerate(gallery):
            if not item.file.data:
                continue
            try:
                url = await self.storage.upload(
                    item.file.data,
                    content_type=item.file.content_type,
                    prefix="product-gallery",
                    filename=item.file.filename,
                )
            except DependencyError:
                # A failed gallery image is dropped; the main image is mandatory.
                logger.warning("product_gallery_upload_skipped", position=position)
                continue
            entries.append({"url": url, "alt": item.alt, "is_main": item.is_main})
        return entries

    async def _unique_slug(self, name: str, *, current_id: str | None = None) -> str:
        async def taken(candidate: str) -> bool:
            criteria = [ProductModel.slug == candidate]
            if current_id is not None:
                criteria.append(ProductModel.id != current_id)
            return await self.uow.products.first(*criteria) is not None

        return await make_unique(slugify(name, fallback="product"), taken)

    async def _unique_sku(self, base: str, *, current_id: str | None = None) -> str:
        async def taken(candidate: str) -> bool:
            criteria = [ProductModel.sku == candidate]
            if current_id is not None:
                criteria.append(ProductModel.id != current_id)
            return await self.uow.products.first(*criteria) is not None

        return await make_unique(base, taken)
