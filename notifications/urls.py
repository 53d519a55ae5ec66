from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'email-logs', views.EmailLogViewSet, basename='email-logs')

urlpatterns = [
    path('', include(router.urls)),
    path('orders/<int:order_id>/send-receipt/', views.resend_order_receipt, name='send-order-receipt'),
    path('ondemand-orders/<int:order_id>/send-receipt/', views.resend_on_demand_receipt, name='send-ondemand-receipt'),
]
