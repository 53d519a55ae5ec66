from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'assignments', views.OnDemandAssignmentViewSet, basename='ondemand-assignments')
router.register(r'assignment-items', views.OnDemandAssignmentItemViewSet, basename='ondemand-assignment-items')
router.register(r'orders', views.OnDemandOrderViewSet, basename='ondemand-orders')

urlpatterns = [
    path('', include(router.urls)),
    path('reports/overview/', views.overview_report, name='ondemand-report-overview'),
    path('reports/products/', views.product_sales_report, name='ondemand-report-products'),
]
