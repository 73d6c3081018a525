STATUS_JUST_LISTED = "just_listed"
STATUS_FOR_SALE = "for_sale"
STATUS_FOR_LEASE = "for_lease"
STATUS_UNDER_CONTRACT = "under_contract"
STATUS_JUST_SOLD = "just_sold"
STATUS_PRICE_IMPROVEMENT = "price_improvement"
STATUS_OPEN_HOUSE = "open_house"
STATUS_COMING_SOON = "coming_soon"

STATUS_OPTIONS = (
    STATUS_JUST_LISTED,
    STATUS_FOR_SALE,
    STATUS_FOR_LEASE,
    STATUS_UNDER_CONTRACT,
    STATUS_JUST_SOLD,
    STATUS_PRICE_IMPROVEMENT,
    STATUS_OPEN_HOUSE,
    STATUS_COMING_SOON,
)

STATUS_LABELS = {
    STATUS_JUST_LISTED: "Just Listed",
    STATUS_FOR_SALE: "For Sale",
    STATUS_FOR_LEASE: "For Lease",
    STATUS_UNDER_CONTRACT: "Under Contract",
    STATUS_JUST_SOLD: "Just Sold",
    STATUS_PRICE_IMPROVEMENT: "Price Improvement",
    STATUS_OPEN_HOUSE: "Open House",
    STATUS_COMING_SOON: "Coming Soon",
}

STATUS_COLORS = {
    STATUS_JUST_LISTED: "#f97316",
    STATUS_FOR_SALE: "#f97316",
    STATUS_FOR_LEASE: "#06b6d4",
    STATUS_UNDER_CONTRACT: "#3b82f6",
    STATUS_JUST_SOLD: "#ef4444",
    STATUS_PRICE_IMPROVEMENT: "#8b5cf6",
    STATUS_OPEN_HOUSE: "#f97316",
    STATUS_COMING_SOON: "#14b8a6",
}
DEFAULT_STATUS_COLOR = "#f97316"

SLOT_PRIMARY_PHOTO = "primary_photo"
SLOT_SECONDARY_PHOTO = "secondary_photo"
SLOT_AGENT_HEADSHOT = "agent_headshot"
SLOT_PRIMARY_LOGO = "primary_logo"
SLOT_SECONDARY_LOGO = "secondary_logo"
SLOT_OPTIONS = (
    SLOT_PRIMARY_PHOTO,
    SLOT_SECONDARY_PHOTO,
    SLOT_AGENT_HEADSHOT,
    SLOT_PRIMARY_LOGO,
    SLOT_SECONDARY_LOGO,
)
LOGO_SLOTS = (SLOT_PRIMARY_LOGO, SLOT_SECONDARY_LOGO)

# Z-order stages; a draw program is executed in non-decreasing stage order.
STAGE_BACKGROUND = 0
STAGE_PHOTOS = 1
STAGE_SCRIMS = 2
STAGE_LOGOS = 3
STAGE_BADGE = 4
STAGE_ADDRESS = 5
STAGE_STATS = 6
STAGE_AGENT = 7

STANDARD_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp", ".tif", ".tiff"}
HEIF_EXTENSIONS = {".heic", ".heif", ".hif"}
SUPPORTED_EXTENSIONS = STANDARD_EXTENSIONS | HEIF_EXTENSIONS

REALTOR_SUFFIX = ", REALTOR®"
