from datetime import datetime
from typing import Optional, Dict, List, Literal
from pydantic import BaseModel, ConfigDict, Field


ChecklistDirection = Literal["OUT", "IN"]
ScanStatus = Literal["OK", "DAMAGED", "LOST"]
ChecklistStatus = Literal["OK", "DAMAGED", "LOST", "MISSING"]
EventStatus = Literal["UPCOMING", "ONGOING", "COMPLETED", "CANCELLED"]
ActivityType = Literal["SUCCESS", "INFO", "WARNING", "ERROR"]
StatusAction = Literal["TO_MAINTENANCE", "TO_BROKEN", "TO_LOST", "FIXED", "DISPOSE"]


class InventoryItemBase(BaseModel):
    name: str
    barcode: Optional[str] = None
    category: str = ""
    description: str = ""
    image_url: Optional[str] = None
    total_quantity: int = 0
    available_quantity: int = 0
    in_use_quantity: int = 0
    maintenance_quantity: int = 0
    broken_quantity: int = 0
    lost_quantity: int = 0
    usage_count: int = 0
    location: str = ""
    rental_price: float = 0
    min_stock: Optional[int] = None


class InventoryItem(InventoryItemBase):
    id: str
    model_config = ConfigDict(from_attributes=True)


class InventoryItemCreate(InventoryItemBase):
    id: Optional[str] = None


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    barcode: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    location: Optional[str] = None
    rental_price: Optional[float] = None
    min_stock: Optional[int] = None


class RestockIn(BaseModel):
    quantity: int = Field(ge=1)


class StatusChangeIn(BaseModel):
    action: StatusAction
    quantity: int = Field(ge=1)
    note: str = ""


class EventItemAllocation(BaseModel):
    item_id: str
    quantity: int = 0
    returned_quantity: int = 0
    done: bool = False


class AllocationIn(BaseModel):
    item_id: str
    quantity: int = Field(ge=1)


class AllocationUpdate(BaseModel):
    quantity: Optional[int] = Field(default=None, ge=0)
    done: Optional[bool] = None


class ChecklistSignature(BaseModel):
    name: str
    title: Optional[str] = None
    signed_at: str
    data_url: Optional[str] = None
    note: Optional[str] = None
    direction: Optional[ChecklistDirection] = None


class ChecklistSignaturePair(BaseModel):
    manager: Optional[ChecklistSignature] = None
    operator: Optional[ChecklistSignature] = None
    note: Optional[str] = None
    direction: ChecklistDirection


class ChecklistSignatures(BaseModel):
    outbound: Optional[ChecklistSignaturePair] = None
    inbound: Optional[ChecklistSignaturePair] = None


class ChecklistSlipItem(BaseModel):
    item_id: str
    name: Optional[str] = None
    order_qty: int = 0
    scanned_out: int = 0
    scanned_in: int = 0
    damaged: int = 0
    lost: int = 0
    missing: int = 0


class ChecklistSlip(BaseModel):
    id: str
    direction: ChecklistDirection
    slip_no: Optional[int] = None
    created_at: str
    manager: Optional[ChecklistSignature] = None
    operator: Optional[ChecklistSignature] = None
    note: Optional[str] = None
    items: List[ChecklistSlipItem] = Field(default_factory=list)


class ChecklistLogEntry(BaseModel):
    id: str
    barcode: Optional[str] = None
    item_id: Optional[str] = None
    item_name: Optional[str] = None
    direction: ChecklistDirection
    status: ChecklistStatus
    quantity: int
    note: Optional[str] = None
    timestamp: str


class EventChecklist(BaseModel):
    outbound: Dict[str, int] = Field(default_factory=dict)
    inbound: Dict[str, int] = Field(default_factory=dict)
    damaged: Dict[str, int] = Field(default_factory=dict)
    lost: Dict[str, int] = Field(default_factory=dict)
    notes: Dict[str, str] = Field(default_factory=dict)
    logs: List[ChecklistLogEntry] = Field(default_factory=list)
    # single signature kept by records written before signature pairs existed
    signature: Optional[ChecklistSignature] = None
    signatures: ChecklistSignatures = Field(default_factory=ChecklistSignatures)
    slips: List[ChecklistSlip] = Field(default_factory=list)


class EventBase(BaseModel):
    name: str
    client: str = ""
    location: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    status: EventStatus = "UPCOMING"


class Event(EventBase):
    id: str
    items: List[EventItemAllocation] = Field(default_factory=list)
    checklist: EventChecklist = Field(default_factory=EventChecklist)


class EventCreate(EventBase):
    id: Optional[str] = None


class ActivityEntry(BaseModel):
    id: str
    timestamp: datetime
    message: str
    type: ActivityType = "INFO"


class AppState(BaseModel):
    inventory: List[InventoryItem] = Field(default_factory=list)
    events: List[Event] = Field(default_factory=list)
    logs: List[ActivityEntry] = Field(default_factory=list)
    last_updated: Optional[datetime] = None


class ScanIn(BaseModel):
    barcode: str
    direction: ChecklistDirection
    status: Optional[ScanStatus] = None
    quantity: Optional[float] = Field(default=None, allow_inf_nan=False)
    note: Optional[str] = None


class ScanCommand(ScanIn):
    event_id: str


class SignatureIn(BaseModel):
    direction: ChecklistDirection
    manager: Optional[ChecklistSignature] = None
    operator: Optional[ChecklistSignature] = None
    note: Optional[str] = None
    items_snapshot: Optional[List[ChecklistSlipItem]] = None
    create_slip: bool = False


class SignatureCommand(SignatureIn):
    event_id: str


class NoteIn(BaseModel):
    note: str = ""


class ChecklistRow(ChecklistSlipItem):
    barcode: Optional[str] = None
    note: str = ""


class ChecklistTotals(BaseModel):
    expected: int = 0
    scanned_out: int = 0
    scanned_in: int = 0
    missing: int = 0
    damaged: int = 0
    lost: int = 0


class ChecklistView(BaseModel):
    event_id: str
    checklist: EventChecklist
    rows: List[ChecklistRow]
    totals: ChecklistTotals


class ScanOut(BaseModel):
    entry: ChecklistLogEntry
    item: Optional[InventoryItem] = None
    allocation: Optional[EventItemAllocation] = None
    checklist: EventChecklist


class SignatureOut(BaseModel):
    slip: Optional[ChecklistSlip] = None
    signatures: ChecklistSignatures
    pending_items: List[ChecklistSlipItem]


class BarcodeBackfillOut(BaseModel):
    updated: int
    items: List[InventoryItem]
