import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Folder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('documents', models.JSONField(blank=True, default=list, help_text='Ordered ids of documents in this folder')),
                ('subfolders', models.JSONField(blank=True, default=list, help_text='Ordered ids of folders in this folder')),
                ('parent_folder', models.ForeignKey(blank=True, help_text='Empty only for the root folder', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='child_folders', to='library.folder')),
            ],
            options={
                'verbose_name': 'Folder',
                'verbose_name_plural': 'Folders',
            },
        ),
        migrations.CreateModel(
            name='Document',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('extension', models.CharField(max_length=32)),
                ('format', models.CharField(choices=[('file', 'File'), ('table', 'Table')], default='file', max_length=16)),
                ('description', models.TextField(blank=True, default='')),
                ('parent_folder', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='child_documents', to='library.folder')),
            ],
            options={
                'verbose_name': 'Document',
                'verbose_name_plural': 'Documents',
            },
        ),
        migrations.AddConstraint(
            model_name='folder',
            constraint=models.UniqueConstraint(fields=('parent_folder', 'name'), name='library_folder_sibling_unique'),
        ),
        migrations.AddConstraint(
            model_name='document',
            constraint=models.UniqueConstraint(fields=('parent_folder', 'name', 'extension'), name='library_document_sibling_unique'),
        ),
    ]
