from django.urls import path
from .views import pos_products, pos_quote, pos_checkout

urlpatterns = [
    path('pos/products/', pos_products, name='pos-products'),
    path('pos/quote/', pos_quote, name='pos-quote'),
    path('pos/checkout/', pos_checkout, name='pos-checkout'),
]
