"""
Ingestion layer — API transports and the paginated fetch loop.

Submodules:
  pagination      — fetch_all_pages(), FetchResult, API error taxonomy
  http            — httpx client factory, HTML-interstitial-safe JSON decoding
  merchant_client — Merchant Center reports/listing/custombatch
  ads_client      — Google Ads search (per-label performance report)

Credential placement (.env, gitignored):
  MERCHANT_ACCESS_TOKEN  — OAuth2 bearer token for the Content API
  ADS_ACCESS_TOKEN       — OAuth2 bearer token for the Ads API (optional)
  ADS_DEVELOPER_TOKEN    — Ads API developer token
"""
