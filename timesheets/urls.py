# File: timesheets/urls.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from django.urls import path

from . import views

app_name = "timesheets"

urlpatterns = [
    path("<int:pk>/grid/", views.grid_detail, name="grid_detail"),
    path("check-duplicate/", views.check_duplicate_view, name="check_duplicate"),
    path("validate-cell/", views.validate_cell_view, name="validate_cell"),
    path("save/", views.save_grid_view, name="save_grid"),
]
