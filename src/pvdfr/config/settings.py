import os

class Config:
    # Host files touched by the provisioner
    fstab_path = os.getenv("PVDFR_FSTAB_PATH", "/etc/fstab")
    exports_path = os.getenv("PVDFR_EXPORTS_PATH", "/etc/exports")
    smb_conf_path = os.getenv("PVDFR_SMB_CONF_PATH", "/etc/samba/smb.conf")
    sshd_config_path = os.getenv("PVDFR_SSHD_CONFIG_PATH", "/etc/ssh/sshd_config")
    os_release_path = os.getenv("PVDFR_OS_RELEASE_PATH", "/etc/os-release")

    # Operator menu
    state_path = os.getenv("PVDFR_STATE_PATH", "/etc/pvdfr/state.yaml")
    menu_path = os.getenv("PVDFR_MENU_PATH", "/usr/local/bin/storage-menu")

    # Storage defaults
    default_device = os.getenv("PVDFR_DEFAULT_DEVICE", "/dev/sdb")
    mount_point = os.getenv("PVDFR_MOUNT_POINT", "/mnt/storage")
    vg_name = os.getenv("PVDFR_VG_NAME", "storage_vg")
    lv_name = os.getenv("PVDFR_LV_NAME", "storage_lv")
    fs_type = os.getenv("PVDFR_FS_TYPE", "ext4")

    # Credentials are only ever read from the environment or prompted for
    smb_password_env = "PVDFR_SMB_PASSWORD"
    sftp_password_env = "PVDFR_SFTP_PASSWORD"

    config_search_paths = [
        "pvdfr.yaml",
        os.path.expanduser("~/.config/pvdfr/config.yaml"),
        "/etc/pvdfr/config.yaml",
    ]

config = Config()
