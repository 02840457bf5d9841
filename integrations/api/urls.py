# integrations/api/urls.py

from django.urls import path

from integrations.api.views import ColppyCustomerView, ColppyRecordsView, TaxpayerLookupView

urlpatterns = [
    path("tax-id/<str:cuit>/", TaxpayerLookupView.as_view(), name="taxpayer-lookup"),
    path("colppy/customers/<str:cuit>/", ColppyCustomerView.as_view(), name="colppy-customer"),
    path("colppy/records/", ColppyRecordsView.as_view(), name="colppy-records"),
]
