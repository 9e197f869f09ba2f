DEFAULT_API_URL = "http://localhost:8000"
HML_HOSTNAME = "hml.marketdash.com.br"
HML_API_HTTPS = "https://api.hml.marketdash.com.br"
HML_API_HTTP = "http://api.hml.marketdash.com.br"

DATASET_ROWS = "/api/v1/datasets/all/rows"
DATASETS_ALL = "/api/v1/datasets/all"

AD_SPENDS = "/api/v1/ad_spends"
AD_SPEND_ITEM = "/api/v1/ad_spends/{ad_spend_id}"
AD_SPENDS_BULK = "/api/v1/ad_spends/bulk"
AD_SPENDS_ALL = "/api/v1/ad_spends/all"

CLICK_ROWS = "/api/v1/clicks/all/rows"
CLICKS_ALL = "/api/v1/clicks/all"

SUBSCRIPTION_STATUS = "/api/v1/subscription/status"
