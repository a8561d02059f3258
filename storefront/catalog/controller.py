from quart import Blueprint, jsonify, request

from .categories import (
    CreateCategoryRequest,
    UpdateCategoryRequest,
    category_tree,
    create_category,
    delete_category,
    get_category,
    list_categories,
    list_subcategories,
    update_category,
)
from .products import (
    CreateProductRequest,
    UpdateProductRequest,
    create_product,
    delete_product,
    get_product,
    list_products,
    update_product,
)
from ..auth.guards import require_admin, require_auth
from ..common.validation import validate_body

products_bp = Blueprint("products", __name__, url_prefix="/api/products")
categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


# Products

@products_bp.get("")
async def products_list():
    items = await list_products(request.args.get("category"), request.args.get("subcategory"))
    return jsonify({"items": [p.to_dict() for p in items]})


@products_bp.get("/<slug>")
async def product_detail(slug: str):
    product = await get_product(slug)
    return jsonify({"item": product.to_dict()})


@products_bp.post("")
@require_auth
@require_admin
async def product_create():
    result = await validate_body(CreateProductRequest)
    if not result.ok:
        raise result.to_error()
    product = await create_product(result.value)
    return jsonify({"item": product.to_dict()}), 201


@products_bp.patch("/<slug>")
@require_auth
@require_admin
async def product_update(slug: str):
    result = await validate_body(UpdateProductRequest)
    if not result.ok:
        raise result.to_error()
    product = await update_product(slug, result.value)
    return jsonify({"item": product.to_dict()})


@products_bp.delete("/<slug>")
@require_auth
@require_admin
async def product_delete(slug: str):
    await delete_product(slug)
    return jsonify({"ok": True})


# Categories

@categories_bp.get("")
async def categories_list():
    items = await list_categories()
    return jsonify({"items": [c.to_dict() for c in items]})


@categories_bp.get("/tree")
async def categories_tree():
    return jsonify({"items": await category_tree()})


@categories_bp.get("/<slug>")
async def category_detail(slug: str):
    category = await get_category(slug)
    return jsonify({"item": category.to_dict()})


@categories_bp.get("/<slug>/subcategories")
async def category_children(slug: str):
    items = await list_subcategories(slug)
    return jsonify({"items": [c.to_dict() for c in items]})


@categories_bp.post("")
@require_auth
@require_admin
async def category_create():
    result = await validate_body(CreateCategoryRequest)
    if not result.ok:
        raise result.to_error()
    category = await create_category(result.value)
    return jsonify({"item": category.to_dict()}), 201


@categories_bp.patch("/<slug>")
@require_auth
@require_admin
async def category_update(slug: str):
    result = await validate_body(UpdateCategoryRequest)
    if not result.ok:
        raise result.to_error()
    category = await update_category(slug, result.value)
    return jsonify({"item": category.to_dict()})


@categories_bp.delete("/<slug>")
@require_auth
@require_admin
async def category_delete(slug: str):
    await delete_category(slug)
    return jsonify({"ok": True})
