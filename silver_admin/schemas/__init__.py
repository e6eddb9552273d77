from silver_admin.schemas.admin import (
    AdminCreate,
    AdminLogin,
    AdminProfileUpdate,
    AdminResponse,
    AdminStatusUpdate,
    PasswordChange,
)
from silver_admin.schemas.order import (
    AddressSnapshot,
    BulkStatusUpdate,
    OrderCreate,
    OrderItemCreate,
    OrderResponse,
    PaymentUpdate,
    PricingInput,
    StatusUpdate,
)
from silver_admin.schemas.inventory import (
    InventoryCreate,
    InventoryResponse,
    MovementCreate,
    ReservationChange,
    TransferCreate,
)
