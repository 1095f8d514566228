from django.urls import path

from . import views

urlpatterns = [
    path('setup', views.paypal_setup, name='paypal-setup'),
    path('order', views.paypal_create_order, name='paypal-create-order'),
    path('order/<str:order_id>/capture', views.paypal_capture_order, name='paypal-capture-order'),
]
