# functions/constants.py

STORAGE_ROOT_PATH = '/RentDesk/Storage'

# Storage keys. Per-user keys are suffixed with the user id.
PROPERTIES_KEY = 'properties'
TENANTS_KEY = 'tenants'
PAYMENTS_KEY_PREFIX = 'payments'
MAINTENANCE_KEY_PREFIX = 'maintenance'
SETTINGS_KEY_PREFIX = 'settings'
NOTIFICATIONS_KEY = 'notifications'
THEME_KEY = 'theme'

DEFAULT_USER_ID = 'default'
MAX_NOTIFICATIONS = 50

# Property
PROPERTY_TYPES = ['apartment', 'house', 'condo', 'commercial', 'vacation']
PROPERTY_TYPE_LABELS = {
    'apartment': 'Apartment Building',
    'house': 'Single Family House',
    'condo': 'Condominium',
    'commercial': 'Commercial Property',
    'vacation': 'Vacation Rental',
}
PROPERTY_TYPE_COLORS = {
    'apartment': '#4ECDC4',
    'house': '#FFD93D',
    'condo': '#9B5DE5',
    'commercial': '#00BBF9',
    'vacation': '#FF8E53',
}
DEFAULT_PROPERTY_COLOR = '#999999'
MIN_PROPERTY_UNITS = 1
MAX_PROPERTY_UNITS = 1000

# Bounding boxes as (lat_min, lat_max, lng_min, lng_max), checked in order.
GEOGRAPHIC_REGIONS = [
    ('North America', (24, 50, -130, -60)),
    ('Europe', (35, 60, -10, 40)),
    ('East Asia', (20, 50, 120, 150)),
    ('Australia', (-35, 0, 110, 155)),
]

# Tenant
TENANT_STATUSES = ['active', 'pending', 'inactive']
TENANT_PAYMENT_STATUSES = ['paid', 'pending', 'overdue']
LEASE_EXPIRY_WINDOW_DAYS = 30

# Payment
PAYMENT_STATUSES = ['pending', 'completed', 'failed', 'refunded']
PAYMENT_REQUIRED_FIELDS = ['tenantId', 'amount', 'date', 'propertyId']

# Maintenance
MAINTENANCE_PRIORITIES = ['low', 'medium', 'high', 'emergency']
MAINTENANCE_STATUSES = ['open', 'in_progress', 'completed', 'cancelled']
MAINTENANCE_REQUIRED_FIELDS = ['title', 'propertyId', 'category']
MAINTENANCE_URGENT_PRIORITIES = ['high', 'emergency']

# Settings
THEMES = ['light', 'dark', 'auto']
CURRENCIES = ['USD ($)', 'EUR (€)', 'GBP (£)', 'CAD ($)', 'AUD ($)']
DATE_FORMATS = ['MM/DD/YYYY', 'DD/MM/YYYY', 'YYYY-MM-DD', 'DD MMM YYYY']
SETTINGS_BOOLEAN_FIELDS = [
    'emailNotifications', 'smsNotifications', 'paymentReminders',
    'maintenanceAlerts', 'weeklyReports', 'twoFactorEnabled',
]
INTEGRATIONS = {
    'mpesa': 'mpesaIntegrated',
    'googleCalendar': 'googleCalendarConnected',
    'slack': 'slackConnected',
    'smsService': 'smsServiceConnected',
}
MIN_PASSWORD_LENGTH = 8
SETTINGS_VERSION = '1.0.0'

# Plan tiers
DEFAULT_PLAN = 'starter'
PLAN_NAMES = {
    'starter': 'Starter',
    'essential': 'Essential',
    'professional': 'Professional',
    'business': 'Business',
    'enterprise': 'Enterprise',
}
PLAN_PRICES = {
    'starter': '$9.99/month',
    'essential': '$22.99/month',
    'professional': '$49.99/month',
    'business': '$69.99/month',
    'enterprise': 'Custom Pricing',
}
PLAN_MAX_UNITS = {
    'starter': 5,
    'essential': 20,
    'professional': 50,
    'business': 100,
    'enterprise': 1000,
}
PLAN_FEATURES = {
    'starter': ['Basic Property Management', 'M-Pesa Integration', 'Email Support'],
    'essential': ['All Starter Features', 'Bulk SMS Credits', 'Priority Chat Support'],
    'professional': ['All Essential Features', 'Advanced Reporting', 'Priority Phone Support'],
    'business': ['All Professional Features', 'Multi-user Access', 'Dedicated Account Manager'],
    'enterprise': ['All Business Features', 'Custom Development', '24/7 Premium Support'],
}

# Notification type -> dashboard activity type
ACTIVITY_TYPES = {
    'success': 'payment',
    'warning': 'maintenance',
    'info': 'tenant',
    'error': 'maintenance',
}

# CSV columns as (header, field) pairs. Import matches headers case-insensitively,
# ignoring spaces and underscores.
PROPERTY_CSV_COLUMNS = [
    ('Name', 'name'),
    ('Type', 'type'),
    ('Units', 'units'),
    ('Occupancy', 'occupancy'),
    ('Monthly Income', 'monthlyIncome'),
    ('Address', 'address'),
    ('Status', 'status'),
    ('Lat', 'lat'),
    ('Lng', 'lng'),
    ('Description', 'description'),
    ('Added Date', 'addedDate'),
]
TENANT_CSV_COLUMNS = [
    ('First Name', 'firstName'),
    ('Last Name', 'lastName'),
    ('Email', 'email'),
    ('Phone', 'phone'),
    ('Property ID', 'propertyId'),
    ('Property', 'propertyName'),
    ('Unit', 'unit'),
    ('Monthly Rent', 'monthlyRent'),
    ('Lease Start', 'leaseStart'),
    ('Lease End', 'leaseEnd'),
    ('Status', 'status'),
    ('Payment Status', 'paymentStatus'),
    ('Notes', 'notes'),
    ('Emergency Contact', 'emergencyContact'),
]
PAYMENT_CSV_COLUMNS = [
    ('ID', 'id'),
    ('Tenant ID', 'tenantId'),
    ('Tenant', 'tenantName'),
    ('Property ID', 'propertyId'),
    ('Property', 'propertyName'),
    ('Amount', 'amount'),
    ('Date', 'date'),
    ('Method', 'method'),
    ('Status', 'status'),
    ('Reference', 'reference'),
]
MAINTENANCE_CSV_COLUMNS = [
    ('ID', 'id'),
    ('Title', 'title'),
    ('Property ID', 'propertyId'),
    ('Property', 'propertyName'),
    ('Category', 'category'),
    ('Priority', 'priority'),
    ('Status', 'status'),
    ('Created', 'createdAt'),
    ('Completed', 'completedAt'),
    ('Estimated Cost', 'estimatedCost'),
    ('Cost', 'actualCost'),
]

# Verification emails
VERIFICATION_CODE_PATTERN = r'^\d{6}$'
