from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List, Union
from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Import input (client pre-parsed rows)
#
# Scalar fields stay untyped on purpose: they are handed to the same cell
# normalizers as spreadsheet cells ("R$ 17,95", 17.95 and "17.95" all work).
# ---------------------------------------------------------------------------

class PriceIn(BaseModel):
    sale: Any = None
    cost: Any = None
    discount: Any = None  # {"type": "percentage"|"fixed", "value": ...} or "10%"

class StockIn(BaseModel):
    own: Any = None
    consigned: Any = None

class CandidateInput(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    sku: Any = None
    title: Any = None
    author: Any = None
    authors: Union[List[str], str, None] = None
    publisher: Any = None
    year: Any = None
    isbn: Any = None
    page_count: Any = Field(default=None, alias="pageCount")
    category: Union[List[str], str, None] = None
    subjects: Union[List[str], str, None] = None
    description: Any = None
    cover_image_url: Any = Field(default=None, alias="coverImageUrl")
    cover_image: Any = None
    weight: Any = None
    condition: Any = None
    binding: Any = None
    language: Any = None
    price: Optional[PriceIn] = None
    stock: Optional[StockIn] = None
    status: Any = None
    label: Any = None
    item_specific_description: Any = Field(default=None, alias="itemSpecificDescription")
    is_resale: Optional[bool] = Field(default=None, alias="isResale")

class ImportRowsIn(BaseModel):
    # rows are validated one by one by the importer; a bad row is a row error
    rows: Optional[List[Any]] = None
    books: Optional[List[Any]] = None  # legacy key

    def candidates(self) -> List[Any]:
        if self.rows is not None:
            return self.rows
        return self.books or []

# ---------------------------------------------------------------------------
# Import output
# ---------------------------------------------------------------------------

class RowErrorOut(BaseModel):
    line: Optional[int] = None
    field: Optional[str] = None
    sku: Optional[str] = None
    title: Optional[str] = None
    isbn: Optional[str] = None
    error: str

class ImportResponse(BaseModel):
    message: str
    status: str
    dryRun: bool = False
    insertedCount: int
    createdCount: int = 0
    updatedCount: int = 0
    errorsCount: int
    errors: List[RowErrorOut] = Field(default_factory=list)

# ---------------------------------------------------------------------------
# Inventory items
# ---------------------------------------------------------------------------

class DiscountOut(BaseModel):
    type: str
    value: Decimal

class PriceOut(BaseModel):
    sale: Decimal
    cost: Optional[Decimal] = None
    discount: Optional[DiscountOut] = None

class StockOut(BaseModel):
    own: int
    consigned: int

class InventoryItemOut(BaseModel):
    id: int
    tenantId: str
    sku: str
    title: str
    authors: List[str] = Field(default_factory=list)
    publisher: Optional[str] = None
    year: Optional[int] = None
    isbn: Optional[str] = None
    pageCount: Optional[int] = None
    subjects: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    coverImageUrl: Optional[str] = None
    weightGrams: Optional[int] = None
    condition: str
    binding: str
    language: str
    price: PriceOut
    stock: StockOut
    status: str
    label: Optional[str] = None
    itemSpecificDescription: Optional[str] = None
    isResale: bool = False
    addedBy: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_orm_item(cls, item) -> "InventoryItemOut":
        discount = None
        if item.discount_type is not None and item.discount_value is not None:
            discount = DiscountOut(type=item.discount_type.value, value=item.discount_value)
        return cls(
            id=item.id,
            tenantId=item.tenant_id,
            sku=item.sku,
            title=item.title,
            authors=list(item.authors or []),
            publisher=item.publisher,
            year=item.year,
            isbn=item.isbn,
            pageCount=item.page_count,
            subjects=list(item.subjects or []),
            description=item.description,
            coverImageUrl=item.cover_image_url,
            weightGrams=item.weight_grams,
            condition=item.condition.value,
            binding=item.binding.value,
            language=item.language.value,
            price=PriceOut(sale=item.price_sale, cost=item.price_cost, discount=discount),
            stock=StockOut(own=item.stock_own, consigned=item.stock_consigned),
            status=item.status.value,
            label=item.label,
            itemSpecificDescription=item.item_specific_description,
            isResale=bool(item.is_resale),
            addedBy=item.added_by,
            createdAt=item.created_at,
            updatedAt=item.updated_at,
        )

class PaginationOut(BaseModel):
    currentPage: int
    totalPages: int
    totalItems: int
    itemsPerPage: int

class InventoryPageOut(BaseModel):
    data: List[InventoryItemOut]
    pagination: PaginationOut

class InventoryItemEnvelope(BaseModel):
    data: InventoryItemOut
