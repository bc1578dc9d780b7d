from django.contrib import admin

from events.models import ClassGroup, Course, Enrollment, Event, Member, Session


class SessionInline(admin.TabularInline):
    model = Session
    extra = 1
    readonly_fields = ["filled"]


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["name", "location", "visibility", "parent", "created_at"]
    list_filter = ["visibility"]
    search_fields = ["name", "location"]
    readonly_fields = ["version"]
    inlines = [SessionInline]


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ["id", "user_id", "event_id", "session_id", "status", "enrolled_at"]
    list_filter = ["status"]
    search_fields = ["user_id"]


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ["email", "name", "rm", "role", "course", "class_group"]
    list_filter = ["role", "course"]
    search_fields = ["email", "name", "rm"]


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ["id", "name"]


@admin.register(ClassGroup)
class ClassGroupAdmin(admin.ModelAdmin):
    list_display = ["id", "name", "course"]
    list_filter = ["course"]
