# complaintdesk/models/__init__.py
from complaintdesk.models.customer_models import Customer
from complaintdesk.models.product_models import Product
from complaintdesk.models.engineer_models import Engineer
from complaintdesk.models.inventory_models import SparePart
from complaintdesk.models.complaint_models import Complaint, ComplaintSparePart
from complaintdesk.models.settings_models import SystemSetting
from complaintdesk.models.activity_models import ActivityLog
