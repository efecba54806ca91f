"""문서 저장소 컬렉션 이름"""

SUGGESTIONS = "suggestions"

# outbound
OUTBOUND_ORDERS = "outbound_orders"

# production
WORK_ORDERS = "work_orders"
BOMS = "boms"
FINISHED_INVENTORY = "finished_inventory"
RAW_MATERIALS = "raw_materials"
RAW_INVENTORY = "raw_inventory"

# inbound
INBOUND_POS = "inbound_purchase_orders"
VENDORS = "vendors"
PURCHASE_DRAFTS = "purchase_drafts"

# plan
FORECAST_PLANS = "forecast_plans"
